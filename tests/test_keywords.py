from marketplace.models.models import SubTeamCategory, TeamProfile, TeamType
from marketplace.services.keywords import collect_keywords, extract_keywords, tokenize


class TestTokenize:

    def test_lowercases_and_splits_on_whitespace(self):
        assert tokenize("Computer  Vision\tLabs") == ["computer", "vision", "labs"]

    def test_non_text_yields_nothing(self):
        assert tokenize(None) == []
        assert tokenize(42) == []


class TestExtractKeywords:

    def test_consulting_firm_keywords(self, vision_labs):
        keywords = extract_keywords(vision_labs)

        assert {"vision", "labs", "computer", "consulting", "opencv", "yolo", "team"} == keywords

    def test_is_deterministic(self, vision_labs):
        assert extract_keywords(vision_labs) == extract_keywords(vision_labs)

    def test_tag_values_are_lowercased(self):
        team = TeamProfile(name="Growth", type=TeamType.DEPARTMENT, sub_team_category=SubTeamCategory.MARKETING)

        keywords = extract_keywords(team)

        assert "department" in keywords
        assert "marketing" in keywords
        assert "DEPARTMENT" not in keywords

    def test_arrays_ignored_for_regular_teams(self):
        team = TeamProfile(name="Core", tech_stack=["Kubernetes"], is_consulting_firm=False)

        assert "kubernetes" not in extract_keywords(team)

    def test_multi_word_entries_contribute_every_word(self):
        team = TeamProfile(name="Acme", is_consulting_firm=True, ai_specializations=["Natural Language Processing"])

        keywords = extract_keywords(team)

        assert {"natural", "language", "processing"} <= keywords

    def test_malformed_array_does_not_raise(self):
        team = TeamProfile.model_construct(
            name="Broken",
            description=None,
            type=TeamType.TEAM,
            sub_team_category=None,
            is_consulting_firm=True,
            ai_specializations="not a list",
            tech_stack=["Spark", 7],
            industries=None,
            parse_issues=[],
        )

        extraction = collect_keywords(team)

        assert "spark" in extraction.keywords
        assert "broken" in extraction.keywords
        assert extraction.degraded
        assert {issue.field for issue in extraction.issues} == {"ai_specializations", "tech_stack"}
        assert all(issue.kind == "PARSE_DEGRADED" for issue in extraction.issues)


class TestTeamFromDocument:

    def test_decodes_json_text_columns(self):
        team = TeamProfile.from_document({
            "team_id": "t1",
            "name": "Data Crew",
            "is_consulting_firm": True,
            "tech_stack": '["Airflow", "dbt"]',
            "industries": ["Retail"],
            "members": [{"user_id": "a"}, "b"],
        })

        assert team.tech_stack == ["Airflow", "dbt"]
        assert team.industries == ["Retail"]
        assert team.member_ids == ["a", "b"]
        assert team.parse_issues == []

    def test_bad_json_degrades_only_that_field(self):
        team = TeamProfile.from_document({
            "name": "Data Crew",
            "is_consulting_firm": True,
            "ai_specializations": "[broken",
            "tech_stack": '["Airflow"]',
            "industries": '["Fintech"]',
        })

        extraction = collect_keywords(team)

        assert team.ai_specializations == []
        assert {"airflow", "fintech"} <= extraction.keywords
        assert [issue.field for issue in extraction.issues] == ["ai_specializations"]

    def test_unknown_type_falls_back_to_team(self):
        team = TeamProfile.from_document({"name": "X", "type": "GUILD"})

        assert team.type == TeamType.TEAM
        assert team.parse_issues[0].field == "type"
