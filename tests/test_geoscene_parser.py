import unittest

from geoscene.errors import FormatError, MatchReferenceWarning, UnrecognizedLineWarning
from geoscene.formats.geoscene import join_base_path, parse_geoscene, validate_match_groups
from geoscene.formats.model import PENDING, CollectionKind, SlotCoordinate


SCENE_DOC = """GeoScene V2.0
# demo scene
Sequence 3 5
DataFormat PNG

GeoCast Field0 1400 900 images/f0_%d.png casts/f0_%03d.geocast
GeoCast Field1 1400 900.5 images/f1.png casts/f1.geocast
GeoCastZ WorldFloor 800 600 floor.png floor.geocast

MatchGroup 0
MatchCam Field0
MatchCam Field1
MatchSurface WorldFloor

MatchGroup 1
MatchGroup 2
  MatchCam Field1
"""


class GeoSceneStructureTests(unittest.TestCase):
    def test_header_fields(self) -> None:
        scene = parse_geoscene(SCENE_DOC)
        self.assertEqual(scene.format_version, "2.0")
        self.assertEqual(scene.frame_range, (3, 5))
        self.assertEqual(scene.data_format, "PNG")

    def test_cast_entries_are_expanded_against_base_path(self) -> None:
        scene = parse_geoscene(SCENE_DOC, "data/scene")
        field0, field1 = scene.cast_collection
        self.assertEqual(field0.name, "Field0")
        self.assertEqual(field0.size, (1400.0, 900.0))
        self.assertEqual(
            field0.image_paths,
            ["data/scene/images/f0_3.png", "data/scene/images/f0_4.png", "data/scene/images/f0_5.png"],
        )
        self.assertEqual(
            field0.cast_paths,
            ["data/scene/casts/f0_003.geocast", "data/scene/casts/f0_004.geocast", "data/scene/casts/f0_005.geocast"],
        )
        self.assertEqual(field0.camera_slots, [PENDING, PENDING, PENDING])
        self.assertEqual(field1.size, (1400.0, 900.5))
        self.assertEqual(field1.cast_paths, ["data/scene/casts/f1.geocast"])
        self.assertEqual(field1.camera_slots, [PENDING])
        self.assertFalse(scene.is_resolved())

    def test_depth_casts_go_to_their_own_collection(self) -> None:
        scene = parse_geoscene(SCENE_DOC)
        self.assertEqual([e.name for e in scene.depth_cast_collection], ["WorldFloor"])
        self.assertEqual(scene.depth_cast_collection[0].image_paths, ["floor.png"])

    def test_match_groups(self) -> None:
        scene = parse_geoscene(SCENE_DOC)
        self.assertEqual([g.index for g in scene.match_groups], [0, 1, 2])
        first, empty, last = scene.match_groups
        self.assertEqual(first.camera_names, ["Field0", "Field1"])
        self.assertEqual(first.surface_names, ["WorldFloor"])
        self.assertEqual(empty.camera_names, [])
        self.assertEqual(empty.surface_names, [])
        self.assertEqual(last.camera_names, ["Field1"])

    def test_match_cam_after_match_surface_ends_group(self) -> None:
        text = "GeoScene V2.0\nMatchGroup 4\nMatchSurface A\nMatchCam B\nMatchSurface C\n"
        issues = []
        scene = parse_geoscene(text, issues=issues, validate_matches=False)
        self.assertEqual(len(scene.match_groups), 1)
        self.assertEqual(scene.match_groups[0].surface_names, ["A"])
        self.assertEqual(scene.match_groups[0].camera_names, [])
        self.assertEqual([i.line for i in issues], ["MatchCam B", "MatchSurface C"])

    def test_group_ends_at_next_construct(self) -> None:
        text = "GeoScene V2.0\nMatchGroup 0\nMatchCam A\nDataFormat JPG\n"
        scene = parse_geoscene(text, validate_matches=False)
        self.assertEqual(scene.match_groups[0].camera_names, ["A"])
        self.assertEqual(scene.data_format, "JPG")

    def test_cast_reference_callback(self) -> None:
        seen = []
        parse_geoscene(SCENE_DOC, "base", on_cast_reference=lambda coord, path: seen.append((coord, path)))
        self.assertEqual(len(seen), 5)
        self.assertEqual(seen[0], (SlotCoordinate(CollectionKind.CAST, 0, 0), "base/casts/f0_003.geocast"))
        self.assertEqual(seen[2], (SlotCoordinate(CollectionKind.CAST, 0, 2), "base/casts/f0_005.geocast"))
        self.assertEqual(seen[3], (SlotCoordinate(CollectionKind.CAST, 1, 0), "base/casts/f1.geocast"))
        self.assertEqual(seen[4], (SlotCoordinate(CollectionKind.DEPTH_CAST, 0, 0), "base/floor.geocast"))

    def test_slot_coordinates_match_callback_order(self) -> None:
        seen = []
        scene = parse_geoscene(SCENE_DOC, on_cast_reference=lambda coord, path: seen.append((coord, path)))
        self.assertEqual(scene.slot_coordinates(), seen)

    def test_parse_twice_is_equal(self) -> None:
        first = parse_geoscene(SCENE_DOC, "x")
        second = parse_geoscene(SCENE_DOC, "x")
        self.assertIsNot(first, second)
        self.assertEqual(first, second)
        self.assertEqual(first.to_dict(), second.to_dict())

    def test_lookup_by_name_is_last_write_wins(self) -> None:
        text = "GeoScene V2.0\nGeoCast A 1 1 a.png a.geocast\nGeoCast A 2 2 b.png b.geocast\n"
        scene = parse_geoscene(text)
        self.assertEqual(scene.find_cast("A").size, (2.0, 2.0))
        self.assertIsNone(scene.find_depth_cast("A"))

    def test_patterns_before_sequence_expand_to_nothing(self) -> None:
        text = "GeoScene V2.0\nGeoCast A 1 1 a%d.png a%d.geocast\nSequence 0 1\n"
        scene = parse_geoscene(text)
        entry = scene.cast_collection[0]
        self.assertEqual(entry.image_paths, [])
        self.assertEqual(entry.camera_slots, [])
        self.assertTrue(scene.is_resolved())


class GeoSceneErrorTests(unittest.TestCase):
    def test_bad_signature(self) -> None:
        with self.assertRaises(FormatError):
            parse_geoscene("GeoCast V2.0\n")
        with self.assertRaises(FormatError):
            parse_geoscene("GeoScene V\n")
        with self.assertRaises(FormatError):
            parse_geoscene("")

    def test_inverted_sequence(self) -> None:
        with self.assertRaises(FormatError):
            parse_geoscene("GeoScene V2.0\nSequence 5 3\n")

    def test_malformed_cast_entry(self) -> None:
        with self.assertRaises(FormatError) as ctx:
            parse_geoscene("GeoScene V2.0\nGeoCastZ Floor 1 1 floor.png\n")
        self.assertEqual(ctx.exception.line_number, 2)

    def test_unknown_top_level_lines_are_skipped(self) -> None:
        issues = []
        scene = parse_geoscene("GeoScene V2.0\nLighting on\nDataFormat EXR\n", issues=issues)
        self.assertEqual(scene.data_format, "EXR")
        self.assertEqual(issues, [UnrecognizedLineWarning(2, "Lighting on", "geoscene")])

    def test_dangling_match_names_are_warnings(self) -> None:
        text = "GeoScene V2.0\nGeoCast A 1 1 a.png a.geocast\nMatchGroup 7\nMatchCam A\nMatchCam B\nMatchSurface Floor\n"
        issues = []
        scene = parse_geoscene(text, issues=issues)
        self.assertEqual(
            issues,
            [MatchReferenceWarning(7, "B", "cast"), MatchReferenceWarning(7, "Floor", "depth_cast")],
        )
        self.assertEqual(len(validate_match_groups(scene)), 2)


class JoinBasePathTests(unittest.TestCase):
    def test_join(self) -> None:
        self.assertEqual(join_base_path("", "a.png"), "a.png")
        self.assertEqual(join_base_path("dir/", "a.png"), "dir/a.png")
        self.assertEqual(join_base_path("dir", "sub/a.png"), "dir/sub/a.png")


if __name__ == "__main__":
    unittest.main()
