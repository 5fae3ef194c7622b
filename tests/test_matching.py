from marketplace.models.models import CandidateProfile, TeamLocation, WorkExperience
from marketplace.models.scoring_settings import MatchingSettings
from marketplace.services.matching import (
    NO_SIGNAL_REASON, Contribution, calculate_match_score, collect_contributions,
    describe_contributions, generate_match_reason, location_matches
)

AUSTIN = TeamLocation(city="Austin")


class TestLocationMatch:

    def test_city_contained_in_location(self):
        assert location_matches(CandidateProfile(id="a", location="Austin, TX"), AUSTIN)

    def test_case_insensitive(self):
        assert location_matches(CandidateProfile(id="a", location="AUSTIN"), AUSTIN)

    def test_country_equality(self):
        team = TeamLocation(city="Germany")
        assert location_matches(CandidateProfile(id="a", country="germany"), team)

    def test_no_team_city(self):
        assert not location_matches(CandidateProfile(id="a", location="Austin"), TeamLocation())
        assert not location_matches(CandidateProfile(id="a", location="Austin"), None)


class TestMatchScore:

    def test_location_alone_scores_three(self):
        candidate = CandidateProfile(id="a", location="Austin")

        assert calculate_match_score(set(), candidate, AUSTIN) == 3

    def test_empty_keywords_without_location_scores_zero(self):
        candidate = CandidateProfile(id="a", bio="anything", skills=["Python"])

        assert calculate_match_score(set(), candidate) == 0

    def test_each_signal_weight(self, rich_candidate):
        assert calculate_match_score({"opencv"}, rich_candidate) == 3
        assert calculate_match_score({"engineer"}, rich_candidate) == 2
        assert calculate_match_score({"lead"}, rich_candidate) == 2
        assert calculate_match_score({"pipelines"}, rich_candidate) == 1
        assert calculate_match_score({"deployments"}, rich_candidate) == 1

    def test_keyword_counts_once_per_source(self):
        candidate = CandidateProfile(id="a", skills=["Python", "Python scripting"])

        assert calculate_match_score({"python"}, candidate) == 3

    def test_adding_keywords_never_lowers_score(self, rich_candidate):
        base = {"vision"}
        extended = base | {"opencv", "unrelated"}

        assert calculate_match_score(extended, rich_candidate, AUSTIN) >= calculate_match_score(base, rich_candidate, AUSTIN)

    def test_adding_a_skill_never_lowers_score(self, rich_candidate):
        keywords = {"vision", "opencv", "kubernetes", "engineer"}
        before = calculate_match_score(keywords, rich_candidate, AUSTIN)

        for extra in ("Kubernetes", "Gardening", "OpenCV"):
            grown = rich_candidate.model_copy(update={"skills": rich_candidate.skills + [extra]})
            assert calculate_match_score(keywords, grown, AUSTIN) >= before

    def test_new_skill_repeating_title_and_bio_keyword(self):
        candidate = CandidateProfile(id="a", job_title="Vision Engineer", bio="vision pipelines")
        before = calculate_match_score({"vision"}, candidate)

        grown = candidate.model_copy(update={"skills": ["Computer Vision"]})

        assert before == 3
        assert calculate_match_score({"vision"}, grown) == before + 3

    def test_custom_weights(self):
        settings = MatchingSettings(skill_points=5, location_points=0)
        candidate = CandidateProfile(id="a", skills=["Rust"], location="Austin")

        assert calculate_match_score({"rust"}, candidate, AUSTIN, settings) == 5

    def test_contributions_put_location_last(self, rich_candidate):
        contributions = collect_contributions({"vision"}, rich_candidate, AUSTIN)

        assert contributions[-1].source == "location"


class TestMatchReason:

    def test_no_signals(self):
        candidate = CandidateProfile(id="a")

        assert generate_match_reason({"vision"}, candidate) == NO_SIGNAL_REASON

    def test_skill_and_location(self):
        candidate = CandidateProfile(id="u1", skills=["OpenCV"], location="Austin")

        assert generate_match_reason({"opencv", "vision"}, candidate, AUSTIN) == "Skilled in OpenCV; based in Austin"

    def test_limits_to_top_factors(self, rich_candidate):
        reason = generate_match_reason({"opencv", "pytorch", "engineer", "pipelines"}, rich_candidate, AUSTIN)

        assert reason == "Skilled in OpenCV, PyTorch; based in Austin, TX"

    def test_duplicate_factors_collapse(self):
        contributions = [
            Contribution(2, "role", "Data Engineer"),
            Contribution(2, "role", "data engineer"),
            Contribution(1, "bio", "etl"),
        ]

        assert describe_contributions(contributions) == "Experience as Data Engineer; mentions etl"

    def test_experience_role_reason(self):
        candidate = CandidateProfile(id="a", work_experiences=[WorkExperience(role="MLOps Engineer")])

        assert generate_match_reason({"mlops"}, candidate) == "Experience as MLOps Engineer"
