"""
Tests for required attribute validation.
"""

import unittest

from django.core.exceptions import ValidationError

from ldapentry.attributes import AttributeStore
from ldapentry.validators import (
    MissingAttributeError,
    RequiredAttributesValidator,
    format_missing_field_error,
)


class TestFormatMissingFieldError(unittest.TestCase):
    def test_message(self):
        self.assertEqual(
            format_missing_field_error("cn"), "Missing compulsory field [cn]"
        )


class TestRequiredAttributesValidator(unittest.TestCase):
    """Test RequiredAttributesValidator."""

    def setUp(self):
        self.store = AttributeStore({"cn": ["Name"], "sn": None})
        self.validator = RequiredAttributesValidator(["cn", "sn", "uid"])

    def test_missing_attribute_raises(self):
        with self.assertRaises(ValidationError) as cm:
            self.validator(self.store)
        self.assertIsInstance(cm.exception, MissingAttributeError)
        self.assertEqual(cm.exception.attribute, "sn")
        self.assertEqual(cm.exception.code, "required")
        self.assertEqual(cm.exception.message, "Missing compulsory field [sn]")

    def test_first_failure_wins(self):
        """Only the first missing attribute is reported."""
        with self.assertRaises(MissingAttributeError) as cm:
            self.validator(self.store)
        self.assertEqual(cm.exception.messages, ["Missing compulsory field [sn]"])

    def test_all_present(self):
        self.store.set("sn", ["Surname"]).set("uid", "user")
        self.assertTrue(self.validator(self.store))

    def test_no_required(self):
        self.assertTrue(RequiredAttributesValidator()(self.store))

    def test_only(self):
        self.assertTrue(self.validator(self.store, only=["cn"]))
        with self.assertRaises(MissingAttributeError) as cm:
            self.validator(self.store, only=["uid"])
        self.assertEqual(cm.exception.attribute, "uid")

    def test_only_ignores_undeclared_names(self):
        self.assertTrue(self.validator(self.store, only=["cn", "mail"]))

    def test_empty_only_checks_everything(self):
        with self.assertRaises(MissingAttributeError):
            self.validator(self.store, only=[])

    def test_custom_code(self):
        validator = RequiredAttributesValidator(["uid"], code="missing")
        with self.assertRaises(MissingAttributeError) as cm:
            validator(self.store)
        self.assertEqual(cm.exception.code, "missing")

    def test_equality(self):
        self.assertEqual(
            self.validator, RequiredAttributesValidator(["cn", "sn", "uid"])
        )
        self.assertNotEqual(self.validator, RequiredAttributesValidator(["cn"]))
        self.assertNotEqual(self.validator, ["cn", "sn", "uid"])
