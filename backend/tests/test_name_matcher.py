"""Unit tests for rule-based name matching."""

from __future__ import annotations

import unittest

from app.matching.name_matcher import (
    NAME_MATCH_REASON,
    find_name_matches,
    mentioned_person_names,
    name_matches,
)
from app.matching.types import ContactProfile, MatchSource, MentionedEntity


class NameMatchRuleTests(unittest.TestCase):
    def test_case_insensitive_full_name(self) -> None:
        self.assertTrue(name_matches("sarah johnson", "Sarah Johnson"))

    def test_substring_in_either_direction(self) -> None:
        self.assertTrue(name_matches("sarah", "Sarah Johnson"))
        self.assertTrue(name_matches("dr. sarah johnson phd", "Sarah Johnson"))

    def test_first_and_last_token_split(self) -> None:
        # Middle names in the contact record do not block a first/last mention.
        self.assertTrue(name_matches("sarah johnson", "Sarah Elizabeth Johnson"))
        self.assertTrue(name_matches("sara johnson", "Sarah Johnson"))

    def test_first_and_last_must_both_match(self) -> None:
        self.assertFalse(name_matches("sarah miller", "Sarah Johnson"))
        self.assertFalse(name_matches("emily johnson", "Sarah Johnson"))

    def test_single_token_without_substring_does_not_match(self) -> None:
        self.assertFalse(name_matches("johnny", "Sarah Johnson"))

    def test_blank_names_never_match(self) -> None:
        self.assertFalse(name_matches("", "Sarah Johnson"))
        self.assertFalse(name_matches("   ", "Sarah Johnson"))
        self.assertFalse(name_matches("sarah", ""))


class FindNameMatchesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.contacts = [
            ContactProfile(id="c-1", name="Sarah Johnson"),
            ContactProfile(id="c-2", name="Marcus Lee"),
            ContactProfile(id="c-3", name=""),
        ]

    def test_person_names_are_normalized_and_filtered(self) -> None:
        entities = [
            MentionedEntity(entity_type="person_name", value="  Sarah   JOHNSON "),
            MentionedEntity(entity_type="sector", value="fintech"),
            MentionedEntity(entity_type="person_name", value=""),
        ]
        self.assertEqual(mentioned_person_names(entities), ["sarah johnson"])

    def test_matches_carry_fixed_score_and_reason(self) -> None:
        matches = find_name_matches(["sarah johnson"], self.contacts, {"c-1": 0.42})

        self.assertEqual(len(matches), 1)
        match = matches[0]
        self.assertEqual(match.contact_id, "c-1")
        self.assertEqual(match.score, 3)
        self.assertEqual(match.reasons, [NAME_MATCH_REASON])
        self.assertEqual(match.semantic_similarity, 0.42)
        self.assertEqual(match.source, MatchSource.NAME)
        self.assertIn("Sarah Johnson", match.justification)

    def test_similarity_is_none_without_table_entry(self) -> None:
        matches = find_name_matches(["marcus lee"], self.contacts, {})
        self.assertEqual([m.contact_id for m in matches], ["c-2"])
        self.assertIsNone(matches[0].semantic_similarity)

    def test_any_mentioned_name_can_match(self) -> None:
        matches = find_name_matches(["nobody here", "marcus lee", "sarah"], self.contacts)
        self.assertEqual([m.contact_id for m in matches], ["c-1", "c-2"])

    def test_repeated_runs_flag_the_same_contacts(self) -> None:
        names = ["sarah johnson", "lee"]
        first = find_name_matches(names, self.contacts)
        second = find_name_matches(names, self.contacts)
        self.assertEqual(first, second)

    def test_no_names_means_no_matches(self) -> None:
        self.assertEqual(find_name_matches([], self.contacts), [])


if __name__ == "__main__":
    unittest.main()
