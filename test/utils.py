"""
Utils module behavioral tests (Unset marker, coalesce, rename, mirror, pluralize).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import pickle
import unittest
from types import MappingProxyType
from unittest import TestCase

from signet.utils import Unset, UnsetType, coalesce, mirror, pluralize, rename


class Record:
    items = mirror("items")
    table = mirror("table")
    tags = mirror("tags")
    name = mirror("name")

    def __init__(self):
        self._items = [1, 2]
        self._table = {"a": 1}
        self._tags = {"x"}
        self._name = "record"


class TestUnset(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFalseyWithRepr(self):
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testJoinsUnions(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", Unset | str))
        self.assertFalse(isinstance(1, str | Unset))

    def testCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            type("Other", (UnsetType,), {})


class TestHelpers(TestCase):

    def testCoalesce(self):
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(Unset, 3), 3)
        self.assertEqual(coalesce(0, 3), 0)
        self.assertIsNone(coalesce(None, 3))

    def testRenameDirectAndDecorator(self):
        def helper():
            pass

        self.assertIs(rename(helper, "named"), helper)
        self.assertEqual(helper.__name__, "named")
        self.assertEqual(helper.__qualname__, "named")

        @rename("decorated")
        def other():
            pass

        self.assertEqual(other.__name__, "decorated")

    def testRenameRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 1)
        with self.assertRaises(TypeError):
            rename()

    def testMirrorFreezesContainers(self):
        record = Record()
        self.assertEqual(record.items, (1, 2))
        self.assertIsInstance(record.table, MappingProxyType)
        self.assertEqual(record.tags, frozenset({"x"}))
        self.assertEqual(record.name, "record")
        with self.assertRaises(AttributeError):
            record.name = "other"

    def testPluralize(self):
        self.assertEqual(pluralize("signature", 1), "1 signature")
        self.assertEqual(pluralize("signature", 2), "2 signatures")
        self.assertEqual(pluralize("match", 0), "0 matches")
        self.assertEqual(pluralize("entry", 3), "3 entries")
        self.assertEqual(pluralize("key", 2), "2 keys")


if __name__ == "__main__":
    unittest.main()
