import unittest

from geoscene.formats.sequence import expand, has_placeholder


class ExpandTests(unittest.TestCase):
    def test_unpadded_placeholder(self) -> None:
        self.assertEqual(expand("file%d.png", [3, 5]), ["file3.png", "file4.png", "file5.png"])

    def test_widthed_placeholders_share_one_counter(self) -> None:
        self.assertEqual(
            expand("dir%02d/frame%03d.png", [9, 10]),
            ["dir09/frame009.png", "dir10/frame010.png"],
        )

    def test_pattern_free_path_is_single_element(self) -> None:
        self.assertEqual(expand("static.png", [0, 7]), ["static.png"])
        self.assertEqual(expand("static.png", None), ["static.png"])

    def test_every_unpadded_occurrence_is_replaced(self) -> None:
        self.assertEqual(expand("%d/%d.png", (1, 2)), ["1/1.png", "2/2.png"])

    def test_unpadded_placeholder_leaves_widthed_ones(self) -> None:
        self.assertEqual(expand("a%d_%03d", (1, 1)), ["a1_%03d"])

    def test_number_wider_than_padding_is_kept(self) -> None:
        self.assertEqual(expand("f%02d", (123, 123)), ["f123"])

    def test_missing_or_inverted_range_yields_empty(self) -> None:
        self.assertEqual(expand("file%d.png", None), [])
        self.assertEqual(expand("file%04d.png", (5, 3)), [])
        self.assertEqual(expand("file%d.png", ("a", "b")), [])
        self.assertEqual(expand("file%d.png", (1,)), [])

    def test_helpers(self) -> None:
        self.assertTrue(has_placeholder("x%d"))
        self.assertTrue(has_placeholder("x%05d"))
        self.assertFalse(has_placeholder("x%s"))


if __name__ == "__main__":
    unittest.main()
