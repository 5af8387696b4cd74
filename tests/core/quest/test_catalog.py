"""카탈로그 로드 + 검증 테스트"""

import json
import logging
from pathlib import Path

import pytest

from src.core.errors import ContentError
from src.core.quest.catalog import (
    find_prerequisite_cycle,
    load_catalog,
    load_catalog_file,
)
from src.core.quest.enums import PrerequisiteType, Rarity, Repeatability

SAMPLE_CATALOG = Path(__file__).parents[3] / "src" / "data" / "quest_catalog.json"


def _quest(quest_id, **kwargs):
    data = {"id": quest_id, "objectives": [{"id": "o1", "type": "complete"}]}
    data.update(kwargs)
    return data


class TestLoadCatalog:
    def test_sample_catalog_loads(self):
        catalog = load_catalog_file(SAMPLE_CATALOG)
        assert "first_steps" in catalog.quests
        assert "nova" in catalog.characters
        assert "wallet_linked" in catalog.achievements
        assert [q.quest_id for q in catalog.reactive_quests("Staked(address,uint256)")] == [
            "staking_streak"
        ]

    def test_definition_order_quests_then_characters(self):
        catalog = load_catalog(
            {
                "characters": [{"id": "c1"}],
                "quests": [_quest("q2"), _quest("q1")],
            }
        )
        assert catalog.definition_ids() == ["q2", "q1", "c1"]

    def test_defaults_when_tables_omitted(self):
        catalog = load_catalog({"quests": [_quest("q1")]})
        assert sorted(catalog.level_rewards) == [5, 10, 25, 50]
        assert len(catalog.skill_tree) == 5

    def test_rarity_roll_parsed(self):
        catalog = load_catalog(
            {
                "quests": [
                    _quest(
                        "q1",
                        rewards=[
                            {
                                "type": "nft",
                                "item": "badge",
                                "rarity_roll": {
                                    "rare_drop_chance": 30,
                                    "num_words": 2,
                                    "tiers": [
                                        {"rarity": "epic", "probability": 0.2},
                                        {"rarity": "rare", "probability": 0.8},
                                    ],
                                },
                            }
                        ],
                    )
                ]
            }
        )
        roll = catalog.quests["q1"].rewards[0].rarity_roll
        assert roll.num_words == 2
        assert roll.tiers == ((Rarity.EPIC, 0.2), (Rarity.RARE, 0.8))
        assert roll.base_rarity == Rarity.COMMON

    def test_missing_file(self, tmp_path):
        with pytest.raises(ContentError):
            load_catalog_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ContentError):
            load_catalog_file(path)

    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"quests": [_quest("q1")]}), encoding="utf-8")
        assert "q1" in load_catalog_file(path).quests


class TestValidation:
    def test_duplicate_ids_across_namespaces(self):
        with pytest.raises(ContentError) as exc_info:
            load_catalog({"quests": [_quest("shared")], "characters": [{"id": "shared"}]})
        assert exc_info.value.details["ids"] == ["shared"]

    def test_dangling_quest_reference(self):
        with pytest.raises(ContentError):
            load_catalog(
                {"quests": [_quest("q1", prerequisites=[{"type": "quest", "value": "ghost"}])]}
            )

    def test_undeclared_achievement(self):
        with pytest.raises(ContentError):
            load_catalog(
                {
                    "quests": [
                        _quest(
                            "q1",
                            prerequisites=[{"type": "achievement", "value": "nope"}],
                        )
                    ]
                }
            )

    def test_relationship_change_for_unknown_character(self):
        with pytest.raises(ContentError):
            load_catalog({"quests": [_quest("q1", relationship_changes={"ghost": 5})]})

    def test_relationship_prereq_without_character(self):
        with pytest.raises(ContentError):
            load_catalog(
                {
                    "quests": [
                        _quest("q1", prerequisites=[{"type": "relationship", "value": 5}])
                    ]
                }
            )

    def test_character_cycle_rejected(self):
        with pytest.raises(ContentError) as exc_info:
            load_catalog(
                {
                    "characters": [
                        {"id": "a", "prerequisites": [{"type": "character", "value": "b"}]},
                        {"id": "b", "prerequisites": [{"type": "character", "value": "a"}]},
                    ]
                }
            )
        assert exc_info.value.details["nodes"] == ["a", "b"]

    def test_quest_character_cycle_rejected(self):
        with pytest.raises(ContentError):
            load_catalog(
                {
                    "characters": [
                        {"id": "c", "prerequisites": [{"type": "quest", "value": "q"}]}
                    ],
                    "quests": [
                        _quest("q", prerequisites=[{"type": "character", "value": "c"}])
                    ],
                }
            )

    def test_level_rewards_must_ascend(self):
        with pytest.raises(ContentError):
            load_catalog(
                {
                    "quests": [],
                    "level_rewards": [{"level": 10}, {"level": 5}],
                }
            )

    def test_level_rewards_no_duplicates(self):
        with pytest.raises(ContentError):
            load_catalog({"level_rewards": [{"level": 5}, {"level": 5}]})

    def test_skill_tiers_must_be_ordered(self):
        with pytest.raises(ContentError):
            load_catalog(
                {
                    "skill_tree": {
                        "speed": [
                            {
                                "required_level": 1,
                                "name": "Skip",
                                "cost": 1,
                                "bonus": {"magnitude": 0.1},
                            }
                        ]
                    }
                }
            )

    @pytest.mark.parametrize(
        "reward",
        [
            {"type": "nft", "rarity_roll": {"rare_drop_chance": 150}},
            {"type": "nft", "rarity_roll": {"rare_drop_chance": 10, "num_words": 0}},
            {"type": "token", "rarity_roll": {"rare_drop_chance": 10}},
            {"type": "sword"},
        ],
    )
    def test_malformed_rewards(self, reward):
        with pytest.raises(ContentError):
            load_catalog({"quests": [_quest("q1", rewards=[reward])]})

    def test_unknown_objective_type(self):
        with pytest.raises(ContentError):
            load_catalog({"quests": [{"id": "q1", "objectives": [{"id": "o", "type": "fly"}]}]})


class TestReactiveRepeatability:
    def _reactive(self, **criteria):
        criteria.setdefault("event_signature", "Beat()")
        return {"id": "beat", "event_criteria": criteria}

    def test_defaults_to_once(self):
        catalog = load_catalog({"quests": [self._reactive()]})
        assert catalog.quests["beat"].event_criteria.repeatability == Repeatability.ONCE

    def test_repeatable_flag_defaults_to_unlimited(self):
        quest = dict(self._reactive(), is_repeatable=True, cooldown=3600)
        criteria = load_catalog({"quests": [quest]}).quests["beat"].event_criteria
        assert criteria.repeatability == Repeatability.UNLIMITED

    def test_explicit_repeatability_kept(self):
        quest = dict(self._reactive(repeatability="daily"), is_repeatable=True)
        criteria = load_catalog({"quests": [quest]}).quests["beat"].event_criteria
        assert criteria.repeatability == Repeatability.DAILY

    def test_repeatable_flag_contradicts_once(self):
        quest = dict(self._reactive(repeatability="once"), is_repeatable=True)
        with pytest.raises(ContentError) as exc_info:
            load_catalog({"quests": [quest]})
        assert "beat" in exc_info.value.details["error"]


class TestRollWordLimit:
    def _catalog_data(self, num_words):
        reward = {
            "type": "nft",
            "item": "badge",
            "rarity_roll": {"rare_drop_chance": 10, "num_words": num_words},
        }
        return {"quests": [_quest("q1", rewards=[{"type": "token", "amount": 1}, reward])]}

    def test_within_limit(self):
        catalog = load_catalog(self._catalog_data(10), max_roll_words=10)
        assert catalog.quests["q1"].rewards[1].rarity_roll.num_words == 10

    def test_over_limit_rejected(self):
        with pytest.raises(ContentError) as exc_info:
            load_catalog(self._catalog_data(11), max_roll_words=10)
        assert exc_info.value.details == {"rewards": ["q1#1"], "max_words": 10}

    def test_no_limit_by_default(self):
        assert load_catalog(self._catalog_data(11)).quests["q1"]

    def test_sample_catalog_within_default_limit(self):
        assert load_catalog_file(SAMPLE_CATALOG, max_roll_words=10).quests


class TestRelationshipRequirementFolding:
    def test_folded_into_prerequisite(self):
        catalog = load_catalog(
            {
                "characters": [{"id": "nova"}],
                "quests": [_quest("q1", character_id="nova", relationship_requirement=10)],
            }
        )
        prereqs = catalog.quests["q1"].prerequisites
        assert len(prereqs) == 1
        assert prereqs[0].prereq_type == PrerequisiteType.RELATIONSHIP
        assert prereqs[0].value == 10
        assert prereqs[0].character_id == "nova"

    def test_both_declared_stricter_wins_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="src.core.quest.catalog"):
            catalog = load_catalog(
                {
                    "characters": [{"id": "nova"}],
                    "quests": [
                        _quest(
                            "q1",
                            character_id="nova",
                            relationship_requirement=10,
                            prerequisites=[{"type": "relationship", "value": 25}],
                        )
                    ],
                }
            )
        relationship = [
            p
            for p in catalog.quests["q1"].prerequisites
            if p.prereq_type == PrerequisiteType.RELATIONSHIP
        ]
        assert len(relationship) == 1
        assert relationship[0].value == 25
        assert "stricter" in caplog.text

    def test_requires_character(self):
        with pytest.raises(ContentError):
            load_catalog({"quests": [_quest("q1", relationship_requirement=10)]})


class TestFindCycle:
    def test_acyclic(self):
        assert find_prerequisite_cycle({"a": [], "b": ["a"], "c": ["a", "b"]}) == []

    def test_reports_cycle_members_and_dependents(self):
        remaining = find_prerequisite_cycle({"a": ["c"], "b": ["a"], "c": ["b"], "d": ["a"]})
        assert remaining == ["a", "b", "c", "d"]
