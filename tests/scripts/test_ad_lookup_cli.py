import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

from ldap3.core.exceptions import LDAPException

from adlookup.exceptions import InvalidArgumentError
from adlookup.models.group_record import GroupRecord
from adlookup.models.person_record import PersonRecord
from scripts.directory import ad_lookup

MODULE = "scripts.directory.ad_lookup"


class TestParser(unittest.TestCase):

    def setUp(self):
        self.parser = ad_lookup.build_parser()

    def test_user_defaults(self):
        args = self.parser.parse_args(["user"])

        self.assertEqual(args.command, "user")
        self.assertIsNone(args.identifier)
        self.assertEqual(args.max_results, 20)
        self.assertEqual(args.attributes, [])

    def test_user_first_and_last_name(self):
        args = self.parser.parse_args(["user", "--first-name", "Jan*", "--last-name", "Do?"])

        self.assertEqual(args.first_name, "Jan*")
        self.assertEqual(args.last_name, "Do?")

    def test_user_modes_are_exclusive(self):
        with patch("sys.stderr", new_callable=io.StringIO), self.assertRaises(SystemExit):
            self.parser.parse_args(["user", "-i", "jdoe", "--mail", "jdoe@example.com"])

    def test_max_results_range(self):
        with patch("sys.stderr", new_callable=io.StringIO), self.assertRaises(SystemExit):
            self.parser.parse_args(["user", "--max-results", "1001"])
        self.assertEqual(self.parser.parse_args(["user", "--max-results", "1000"]).max_results, 1000)

    def test_group_recursive(self):
        args = self.parser.parse_args(["group", "-u", "jdoe", "--recursive"])

        self.assertEqual(args.identifier, "jdoe")
        self.assertTrue(args.recursive)

    def test_config_get_key_choices(self):
        with patch("sys.stderr", new_callable=io.StringIO), self.assertRaises(SystemExit):
            self.parser.parse_args(["config", "get", "Computer"])


@patch(f"{MODULE}.configure_logging")
class TestMain(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_path = Path(self.temp_dir.name) / "config.json"
        env_patch = patch.dict(os.environ, {"ADLOOKUP_CONFIG_PATH": str(self.config_path)})
        env_patch.start()
        self.addCleanup(env_patch.stop)
        self.addCleanup(self.temp_dir.cleanup)

    def run_main(self, argv):
        output = io.StringIO()
        with redirect_stdout(output), self.assertRaises(SystemExit) as raised:
            ad_lookup.main(argv)
        return raised.exception.code, output.getvalue()

    def test_config_set_then_get(self, mock_logging):
        code, _ = self.run_main(["config", "set", "--user-search-root", "OU=People,DC=example,DC=com"])
        self.assertEqual(code, 0)
        self.assertTrue(self.config_path.exists())

        code, output = self.run_main(["config", "get", "User"])
        self.assertEqual(code, 0)
        self.assertEqual(output.strip(), "OU=People,DC=example,DC=com")

    def test_config_set_without_roots_fails(self, mock_logging):
        code, _ = self.run_main(["config", "set"])

        self.assertEqual(code, 2)

    @patch(f"{MODULE}.ADLookupFacade")
    @patch(f"{MODULE}.LDAPAdapter")
    def test_user_search_prints_table(self, mock_adapter, mock_facade, mock_logging):
        mock_facade.return_value.get_users.return_value = [
            PersonRecord(
                distinguished_name="CN=John Doe,OU=People,DC=example,DC=com",
                account_name="jdoe",
                full_name="John Doe",
                mail="jdoe@example.com",
            )
        ]

        code, output = self.run_main(["user", "-i", "jdoe*"])

        self.assertEqual(code, 0)
        self.assertIn("jdoe@example.com", output)
        self.assertIn("1 result(s)", output)
        kwargs = mock_facade.return_value.get_users.call_args.kwargs
        self.assertEqual(kwargs["identifier"], "jdoe*")
        self.assertEqual(kwargs["max_results"], 20)

    @patch(f"{MODULE}.ADLookupFacade")
    @patch(f"{MODULE}.LDAPAdapter")
    def test_group_search_passes_mode(self, mock_adapter, mock_facade, mock_logging):
        mock_facade.return_value.get_groups.return_value = [
            GroupRecord.from_distinguished_name("CN=Chem Lab,OU=Groups,DC=example,DC=com")
        ]

        code, output = self.run_main(["group", "-u", "jdoe", "--recursive"])

        self.assertEqual(code, 0)
        self.assertIn("Chem Lab", output)
        kwargs = mock_facade.return_value.get_groups.call_args.kwargs
        self.assertEqual(kwargs["identifier"], "jdoe")
        self.assertTrue(kwargs["recursive"])

    @patch(f"{MODULE}.ADLookupFacade")
    @patch(f"{MODULE}.LDAPAdapter")
    def test_no_results_prints_nothing(self, mock_adapter, mock_facade, mock_logging):
        mock_facade.return_value.get_users.return_value = []

        code, output = self.run_main(["user", "--mail", "nobody@example.com"])

        self.assertEqual(code, 0)
        self.assertEqual(output, "")

    @patch(f"{MODULE}.ADLookupFacade")
    @patch(f"{MODULE}.LDAPAdapter")
    def test_invalid_arguments_exit_2(self, mock_adapter, mock_facade, mock_logging):
        mock_facade.return_value.get_users.side_effect = InvalidArgumentError("too short")

        code, _ = self.run_main(["user", "--name", "Jo"])

        self.assertEqual(code, 2)

    @patch(f"{MODULE}.ADLookupFacade")
    @patch(f"{MODULE}.LDAPAdapter")
    def test_directory_failure_exit_1(self, mock_adapter, mock_facade, mock_logging):
        mock_facade.return_value.get_groups.side_effect = LDAPException("server down")

        code, _ = self.run_main(["group", "--name", "Chem*"])

        self.assertEqual(code, 1)

    @patch(f"{MODULE}.LDAPAdapter")
    def test_config_test_reports_settings_and_bind(self, mock_adapter, mock_logging):
        adapter = mock_adapter.return_value
        adapter.get_connection_info.return_value = {"server": "dc01.example.com", "port": 636}
        adapter.test_connection.return_value = True

        code, output = self.run_main(["config", "test"])

        self.assertEqual(code, 0)
        self.assertIn("server: dc01.example.com", output)
        adapter.test_connection.assert_called_once()

    @patch(f"{MODULE}.LDAPAdapter")
    def test_config_test_failed_bind_exit_1(self, mock_adapter, mock_logging):
        mock_adapter.return_value.get_connection_info.return_value = {}
        mock_adapter.return_value.test_connection.return_value = False

        code, _ = self.run_main(["config", "test"])

        self.assertEqual(code, 1)

    @patch(f"{MODULE}.LDAPAdapter", side_effect=ValueError("Missing required configuration keys: ['server']"))
    def test_missing_connection_settings_exit_1(self, mock_adapter, mock_logging):
        code, _ = self.run_main(["user"])

        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
