"""
Tests for the diff engine.
"""

import unittest

from ldapentry.attributes import AttributeStore
from ldapentry.modifications import (
    Modification,
    Operation,
    compute_modifications,
    normalize,
)


class TestOperation(unittest.TestCase):
    """Test the operation codes."""

    def test_codes(self):
        self.assertEqual(Operation.ADD, 1)
        self.assertEqual(Operation.REMOVE, 2)
        self.assertEqual(Operation.REPLACE, 3)


class TestNormalize(unittest.TestCase):
    """Test value normalization."""

    def test_scalar_is_wrapped(self):
        self.assertEqual(normalize("value"), ["value"])
        self.assertEqual(normalize(5), [5])
        self.assertEqual(normalize(b"bytes"), [b"bytes"])

    def test_list_passes_through(self):
        value = ["a", "b"]
        self.assertIs(normalize(value), value)

    def test_tuple_becomes_list(self):
        self.assertEqual(normalize(("a", "b")), ["a", "b"])


class TestComputeModifications(unittest.TestCase):
    """Test compute_modifications."""

    def setUp(self):
        self.raw = AttributeStore(
            {"cn": ["Common Name"], "samaccountname": ["Account Name"]}
        )
        self.current = AttributeStore(self.raw.get_all())

    def test_no_changes(self):
        self.assertEqual(compute_modifications(self.raw, self.current), [])

    def test_remove_replace_add(self):
        self.current.set("cn", None)
        self.current.set("samaccountname", "Changed")
        self.current.set("test", "New Attribute")

        modifications = compute_modifications(self.raw, self.current)

        self.assertEqual(
            modifications,
            [
                Modification("cn", [None], Operation.REMOVE),
                Modification("samaccountname", ["Changed"], Operation.REPLACE),
                Modification("test", ["New Attribute"], Operation.ADD),
            ],
        )
        self.assertEqual(modifications[0].operation, 2)
        self.assertEqual(modifications[1].operation, 3)
        self.assertEqual(modifications[2].operation, 1)

    def test_remove_of_attribute_not_in_raw(self):
        self.current.set("description", None)
        self.assertEqual(
            compute_modifications(self.raw, self.current),
            [Modification("description", [None], Operation.REMOVE)],
        )

    def test_keys_only_in_raw_are_ignored(self):
        self.current.remove("cn")
        self.assertEqual(compute_modifications(self.raw, self.current), [])

    def test_multi_valued_order_matters(self):
        raw = AttributeStore({"mail": ["a@example.com", "b@example.com"]})
        current = AttributeStore({"mail": ["b@example.com", "a@example.com"]})
        self.assertEqual(
            compute_modifications(raw, current),
            [
                Modification(
                    "mail", ["b@example.com", "a@example.com"], Operation.REPLACE
                )
            ],
        )

    def test_equal_lists_are_not_a_change(self):
        """Comparison is by value, not identity."""
        raw = AttributeStore({"mail": ["a@example.com"]})
        current = AttributeStore({"mail": list(["a@example.com"])})
        self.assertEqual(compute_modifications(raw, current), [])

    def test_scalar_equal_to_single_valued_list(self):
        self.current.set("cn", "Common Name")
        self.assertEqual(compute_modifications(self.raw, self.current), [])

    def test_empty_list_is_a_replace(self):
        self.current.set("cn", [])
        self.assertEqual(
            compute_modifications(self.raw, self.current),
            [Modification("cn", [], Operation.REPLACE)],
        )

    def test_order_follows_current(self):
        raw = AttributeStore({"a": ["1"], "b": ["2"], "c": ["3"]})
        current = AttributeStore()
        current.set("c", "30").set("a", "10").set("b", "20")
        self.assertEqual(
            [m.attribute for m in compute_modifications(raw, current)],
            ["c", "a", "b"],
        )

    def test_idempotent(self):
        self.current.set("cn", None)
        self.current.set("test", ["x", "y"])
        first = compute_modifications(self.raw, self.current)
        second = compute_modifications(self.raw, self.current)
        self.assertEqual(first, second)
