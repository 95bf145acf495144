import unittest
from datetime import datetime, timezone

from adlookup.models.group_record import GroupRecord


class TestGroupRecord(unittest.TestCase):
    """Tests for GroupRecord construction and short_info."""

    def test_from_attributes(self):
        created = datetime(2020, 5, 1, tzinfo=timezone.utc)
        group = GroupRecord.from_attributes({
            "distinguishedName": ["CN=Chem Lab,OU=Groups,DC=example,DC=com"],
            "cn": ["Chem Lab"],
            "info": ["Owner: jdoe"],
            "mail": ["chem-lab@example.com"],
            "whenCreated": [created],
        })

        self.assertEqual(group.distinguished_name, "CN=Chem Lab,OU=Groups,DC=example,DC=com")
        self.assertEqual(group.name, "Chem Lab")
        self.assertEqual(group.info, "Owner: jdoe")
        self.assertEqual(group.mail, "chem-lab@example.com")
        self.assertEqual(group.created_date_time, created)
        self.assertNotIn("created_date_time", repr(group))

    def test_from_distinguished_name(self):
        group = GroupRecord.from_distinguished_name("CN=Lab\\, Chem,OU=Groups,DC=example,DC=com")

        self.assertEqual(group.distinguished_name, "CN=Lab\\, Chem,OU=Groups,DC=example,DC=com")
        self.assertEqual(group.name, "Lab, Chem")
        self.assertIsNone(group.info)
        self.assertIsNone(group.short_info)

    def test_from_distinguished_name_without_ou(self):
        group = GroupRecord.from_distinguished_name("CN=Domain Users,CN=Users,DC=example,DC=com")

        self.assertEqual(group.name, "")

    # ----- short_info -----

    def test_short_info_joins_lines(self):
        self.assertEqual(GroupRecord(info="Line one\nLine two").short_info, "Line one; Line two")

    def test_short_info_collapses_consecutive_line_breaks(self):
        self.assertEqual(GroupRecord(info="Line one\r\n\r\nLine two").short_info, "Line one; Line two")

    def test_short_info_truncates_long_text(self):
        info = "x" * 80

        short_info = GroupRecord(info=info).short_info

        self.assertEqual(short_info, "x" * 72 + "...")
        self.assertEqual(len(short_info), 75)

    def test_short_info_keeps_75_characters(self):
        info = "y" * 75

        self.assertEqual(GroupRecord(info=info).short_info, info)

    def test_short_info_absent_without_info(self):
        self.assertIsNone(GroupRecord().short_info)
        self.assertIsNone(GroupRecord(info="").short_info)

    def test_short_info_is_idempotent(self):
        group = GroupRecord(info="a\nb\nc")

        self.assertEqual(group.short_info, group.short_info)
        self.assertEqual(group.info, "a\nb\nc")

    def test_to_dict(self):
        result = GroupRecord(distinguished_name="CN=G,OU=Groups,DC=example,DC=com", name="G",
                             info="a\nb").to_dict()

        self.assertEqual(result["short_info"], "a; b")
        self.assertNotIn("created_date_time", result)
        self.assertNotIn("extra_attributes", result)


if __name__ == "__main__":
    unittest.main()
