import os

# Console-only WARNING logging, no log files written during tests
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest  # noqa: E402

from marketplace.models.models import CandidateProfile, TeamProfile, WorkExperience  # noqa: E402


@pytest.fixture
def vision_labs():
    return TeamProfile(
        team_id="team-1",
        name="Vision Labs",
        description="computer vision consulting",
        is_consulting_firm=True,
        tech_stack=["OpenCV", "YOLO"],
        city="Austin",
        member_ids=["owner-1"],
    )


@pytest.fixture
def candidates():
    return [
        CandidateProfile(id="u1", skills=["OpenCV"], location="Austin"),
        CandidateProfile(id="u2", bio="backend developer", location="Remote"),
    ]


@pytest.fixture
def rich_candidate():
    return CandidateProfile(
        id="u9",
        username="mlpro",
        bio="I build computer vision pipelines",
        job_title="Vision Engineer",
        location="Austin, TX",
        skills=["OpenCV", "PyTorch"],
        work_experiences=[WorkExperience(role="Computer Vision Lead", description="yolo deployments")],
    )
