import unittest

from meristem.errors import InvalidConfiguration
from meristem.rules import Mutator, RuleSet, expand, expanded_length, simulate

PLANT_RULES = {"X": "F-[[X]+X]+F[+FX]-X", "F": "FF"}


class Reverse(Mutator):
    def apply(self, state):
        return state[::-1]


class TestRuleSet(unittest.TestCase):

    def setUp(self):
        self.rules = RuleSet(PLANT_RULES)

    def test_identity_for_missing_symbol(self):
        self.assertEqual(self.rules.replacement("+"), "+")
        self.assertEqual(self.rules.replacement("X"), PLANT_RULES["X"])

    def test_is_read_only(self):
        with self.assertRaises(TypeError):
            self.rules["G"] = "GG"

    def test_source_dict_changes_do_not_leak(self):
        source = {"F": "FF"}
        rules = RuleSet(source)
        source["F"] = "F+F"
        self.assertEqual(rules["F"], "FF")

    def test_equal_to_plain_mapping(self):
        self.assertEqual(self.rules, PLANT_RULES)
        self.assertEqual(hash(self.rules), hash(RuleSet(dict(PLANT_RULES))))

    def test_rejects_empty_replacement(self):
        with self.assertRaises(InvalidConfiguration):
            RuleSet({"F": ""})

    def test_rejects_multi_symbol_key(self):
        with self.assertRaises(InvalidConfiguration):
            RuleSet({"FF": "F"})

    def test_apply_is_one_parallel_pass(self):
        self.assertEqual(RuleSet({"A": "AB", "B": "A"}).apply("AB"), "ABA")


class TestExpand(unittest.TestCase):

    def test_zero_generations_returns_axiom(self):
        self.assertEqual(expand("FX+", PLANT_RULES, 0), "FX+")

    def test_plant_first_generation(self):
        self.assertEqual(expand("X", PLANT_RULES, 1), "F-[[X]+X]+F[+FX]-X")

    def test_algae(self):
        rules = {"A": "AB", "B": "A"}
        self.assertEqual(expand("A", rules, 3), "ABAAB")
        self.assertEqual(expand("A", rules, 5), "ABAABABAABAAB")

    def test_no_rules(self):
        self.assertEqual(expand("F+-F", {}, 5), "F+-F")

    def test_compositional(self):
        for a in range(3):
            for b in range(3):
                self.assertEqual(
                    expand("X", PLANT_RULES, a + b),
                    expand(expand("X", PLANT_RULES, a), PLANT_RULES, b),
                )

    def test_deterministic(self):
        self.assertEqual(expand("X", PLANT_RULES, 4), expand("X", PLANT_RULES, 4))

    def test_negative_generations(self):
        with self.assertRaises(InvalidConfiguration):
            expand("X", PLANT_RULES, -1)

    def test_non_integer_generations(self):
        for bad in (1.5, "2", True):
            with self.assertRaises(InvalidConfiguration):
                expand("X", PLANT_RULES, bad)

    def test_max_length(self):
        self.assertEqual(len(expand("X", PLANT_RULES, 1, max_length=18)), 18)
        with self.assertRaises(InvalidConfiguration):
            expand("X", PLANT_RULES, 5, max_length=100)

    def test_expanded_length_matches(self):
        for gens in range(6):
            self.assertEqual(expanded_length("X", PLANT_RULES, gens), len(expand("X", PLANT_RULES, gens)))


class TestSimulate(unittest.TestCase):

    def test_any_mutator(self):
        self.assertEqual(simulate("abc", 1, Reverse()), "cba")
        self.assertEqual(simulate("abc", 2, Reverse()), "abc")

    def test_rule_set_is_a_mutator(self):
        self.assertEqual(simulate("X", 3, RuleSet(PLANT_RULES)), expand("X", PLANT_RULES, 3))


if __name__ == "__main__":
    unittest.main()
