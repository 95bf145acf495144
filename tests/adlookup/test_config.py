import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from adlookup.config import ADLookupConfig, ConfigStore
from adlookup.exceptions import InvalidArgumentError

USER_ROOT = "OU=People,DC=example,DC=com"
GROUP_ROOT = "OU=Groups,DC=example,DC=com"


class TestConfigStore(unittest.TestCase):
    """Tests for the search root document."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self.temp_dir.name) / "nested" / "config.json"
        self.store = ConfigStore(self.path)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_missing_file_returns_none(self):
        self.assertIsNone(self.store.get_search_root("User"))
        self.assertIsNone(self.store.get_search_root("Group"))

    def test_set_and_get_both_roots(self):
        document = self.store.set_search_roots(USER_ROOT, GROUP_ROOT)

        self.assertEqual(document, {"User": {"SearchRoot": USER_ROOT}, "Group": {"SearchRoot": GROUP_ROOT}})
        self.assertEqual(self.store.get_search_root("User"), USER_ROOT)
        self.assertEqual(self.store.get_search_root("Group"), GROUP_ROOT)

    def test_set_one_root_keeps_the_other(self):
        self.store.set_search_roots(USER_ROOT, GROUP_ROOT)

        self.store.set_search_roots(group_search_root="OU=Teams,DC=example,DC=com")

        self.assertEqual(self.store.get_search_root("User"), USER_ROOT)
        self.assertEqual(self.store.get_search_root("Group"), "OU=Teams,DC=example,DC=com")

    def test_set_requires_a_root(self):
        with self.assertRaises(InvalidArgumentError):
            self.store.set_search_roots()
        self.assertFalse(self.path.exists())

    def test_unknown_key(self):
        with self.assertRaises(InvalidArgumentError):
            self.store.get_search_root("Computer")

    def test_file_is_written_as_json(self):
        self.store.set_search_roots(user_search_root=USER_ROOT)

        with open(self.path, "r", encoding="utf-8") as fh:
            self.assertEqual(json.load(fh), {"User": {"SearchRoot": USER_ROOT}})

    def test_malformed_section_is_replaced(self):
        self.path.parent.mkdir(parents=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump({"User": "not a section", "Other": {"Keep": "me"}}, fh)

        self.assertIsNone(self.store.get_search_root("User"))
        document = self.store.set_search_roots(user_search_root=USER_ROOT)

        self.assertEqual(document["User"], {"SearchRoot": USER_ROOT})
        self.assertEqual(document["Other"], {"Keep": "me"})

    def test_section_without_search_root_reads_as_unset(self):
        self.path.parent.mkdir(parents=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump({"User": {}}, fh)

        self.assertIsNone(self.store.get_search_root("User"))
        self.assertIsNone(self.store.get_search_root("Group"))

    def test_empty_value_reads_as_unset(self):
        self.path.parent.mkdir(parents=True)
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump({"Group": {"SearchRoot": ""}}, fh)

        self.assertIsNone(self.store.get_search_root("Group"))


class TestADLookupConfig(unittest.TestCase):

    @patch.dict(os.environ, {
        "ADLOOKUP_SERVER": "dc01.example.com",
        "ADLOOKUP_SEARCH_BASE": "DC=example,DC=com",
        "ADLOOKUP_USER": "EXAMPLE\\svc-lookup",
        "ADLOOKUP_USE_SSL": "false",
    }, clear=True)
    def test_ldap_config_from_environment(self):
        config = ADLookupConfig.get_ldap_config()

        self.assertEqual(config["server"], "dc01.example.com")
        self.assertEqual(config["search_base"], "DC=example,DC=com")
        self.assertEqual(config["keyring_service"], "adlookup")
        self.assertFalse(config["use_ssl"])
        self.assertEqual(config["port"], 389)
        self.assertEqual(config["timeout"], 30)
        self.assertIsNone(config["password"])

    @patch.dict(os.environ, {"ADLOOKUP_CONFIG_PATH": "/tmp/adlookup-test/config.json"}, clear=True)
    def test_config_path_override(self):
        self.assertEqual(ADLookupConfig.get_config_path(), Path("/tmp/adlookup-test/config.json"))
        self.assertEqual(ConfigStore().path, Path("/tmp/adlookup-test/config.json"))

    @patch.dict(os.environ, {}, clear=True)
    def test_default_config_path(self):
        self.assertEqual(ADLookupConfig.get_config_path().name, "config.json")


if __name__ == "__main__":
    unittest.main()
