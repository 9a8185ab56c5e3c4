"""
Tests for canvas and block operations.
"""

import unittest

from atelier.errors import NotFound
from atelier.ids import IdGenerator
from atelier.models import (
    Block,
    BlockType,
    CanvasType,
    NoteCanvas,
    PlaygroundCanvas,
    PlaygroundContent,
    Project,
)
from atelier.models.payloads import decode_block
from atelier.operations import blocks as block_ops
from atelier.operations import canvases as canvas_ops
from atelier.operations.tree import find_project


def note(canvas_id, blocks=(), title=None, created_at="2024-01-01T00:00:00Z", pinned=False):
    return NoteCanvas(
        id=canvas_id,
        title=title or canvas_id,
        created_at=created_at,
        is_pinned=pinned,
        blocks=list(blocks),
    )


def playground(canvas_id, title="Play", created_at="2024-01-01T00:00:00Z"):
    return PlaygroundCanvas(
        id=canvas_id,
        title=title,
        created_at=created_at,
        playground_content=PlaygroundContent(html="<p>", css="p {}", js="1"),
    )


class TestCanvasOperations(unittest.TestCase):
    """Test adding, removing and editing canvases."""

    def setUp(self):
        self.projects = [
            Project(id="p1", name="One", canvases=[note("n1"), playground("pg1")]),
            Project(id="p2", name="Two", canvases=[]),
        ]

    def test_add_note_canvas_is_prepended(self):
        projects, canvas = canvas_ops.add_canvas(self.projects, "p1", CanvasType.NOTE)

        canvases = find_project(projects, "p1").canvases
        self.assertIs(canvases[0], canvas)
        self.assertEqual(len(canvases), 3)
        self.assertEqual(canvas.title, canvas_ops.DEFAULT_NOTE_TITLE)
        self.assertEqual(len(canvas.blocks), 1)
        self.assertEqual(canvas.blocks[0].type, BlockType.HEADING)
        self.assertEqual(canvas.blocks[0].content, canvas_ops.DEFAULT_NOTE_HEADING)
        self.assertFalse(canvas.is_pinned)
        self.assertEqual(len(find_project(self.projects, "p1").canvases), 2)

    def test_add_playground_canvas(self):
        projects, canvas = canvas_ops.add_canvas(self.projects, "p2", "PLAYGROUND")

        self.assertIsInstance(canvas, PlaygroundCanvas)
        self.assertEqual(canvas.title, canvas_ops.DEFAULT_PLAYGROUND_TITLE)
        self.assertEqual(canvas.playground_content, canvas_ops.DEFAULT_PLAYGROUND_CONTENT)
        self.assertEqual(find_project(projects, "p2").canvases, [canvas])

    def test_add_canvas_to_missing_project(self):
        with self.assertRaises(NotFound):
            canvas_ops.add_canvas(self.projects, "missing", CanvasType.NOTE)

    def test_new_canvas_ids_are_fresh(self):
        ids = IdGenerator(["n1", "pg1"])
        canvas = canvas_ops.new_canvas(CanvasType.NOTE, ids)
        self.assertNotIn(canvas.id, ("n1", "pg1"))
        self.assertIn(canvas.id, ids)
        self.assertIn(canvas.blocks[0].id, ids)

    def test_delete_canvas(self):
        projects = canvas_ops.delete_canvas(self.projects, "p1", "n1")

        self.assertEqual([c.id for c in find_project(projects, "p1").canvases], ["pg1"])
        self.assertIs(canvas_ops.delete_canvas(self.projects, "p1", "missing"), self.projects)

    def test_fallback_canvas(self):
        self.assertEqual(canvas_ops.fallback_canvas_id(self.projects[0]), "n1")
        self.assertIsNone(canvas_ops.fallback_canvas_id(self.projects[1]))
        self.assertIsNone(canvas_ops.fallback_canvas_id(None))

    def test_toggle_pin_twice_restores(self):
        once = canvas_ops.toggle_pin(self.projects, "p1", "pg1")
        twice = canvas_ops.toggle_pin(once, "p1", "pg1")

        self.assertTrue(find_project(once, "p1").canvases[1].is_pinned)
        self.assertFalse(find_project(twice, "p1").canvases[1].is_pinned)
        self.assertEqual(twice, self.projects)

    def test_update_title(self):
        projects = canvas_ops.update_title(self.projects, "p1", "n1", "Renamed")

        self.assertEqual(find_project(projects, "p1").canvases[0].title, "Renamed")
        self.assertIs(projects[1], self.projects[1])
        self.assertIs(canvas_ops.update_title(projects, "p1", "n1", "Renamed"), projects)

    def test_update_playground_content(self):
        content = PlaygroundContent(html="<div>", css="", js="")

        projects = canvas_ops.update_playground_content(self.projects, "p1", "pg1", content)

        self.assertEqual(find_project(projects, "p1").canvases[1].playground_content, content)

    def test_update_playground_content_on_note_is_noop(self):
        content = PlaygroundContent(html="<div>", css="", js="")
        self.assertIs(canvas_ops.update_playground_content(self.projects, "p1", "n1", content), self.projects)


class TestCanvasListing(unittest.TestCase):
    """Test sorting, searching and previews."""

    def test_sort_pinned_first_then_newest(self):
        canvases = [
            note("old", created_at="2024-01-01T00:00:00Z"),
            note("new", created_at="2024-03-01T00:00:00Z"),
            note("pinned_old", created_at="2023-01-01T00:00:00Z", pinned=True),
            note("pinned_new", created_at="2023-06-01T00:00:00Z", pinned=True),
        ]

        ordered = canvas_ops.sort_canvases(canvases)

        self.assertEqual([c.id for c in ordered], ["pinned_new", "pinned_old", "new", "old"])

    def test_search_matches_title_and_blocks(self):
        canvases = [
            note("a", title="Shopping list"),
            note("b", title="Ideas", blocks=[Block(id="b1", type=BlockType.TEXT, content="Buy MILK")]),
            note("c", title="Code", blocks=[
                Block(id="b2", type=BlockType.CODE, content='{"language":"python","code":"print(42)"}'),
            ]),
            note("d", title="Tasks", blocks=[
                Block(id="b3", type=BlockType.TODO, content='{"checked":false,"text":"call the bank"}'),
            ]),
            playground("e", title="Milk playground"),
        ]

        self.assertEqual([c.id for c in canvas_ops.search_canvases(canvases, "milk")], ["b", "e"])
        self.assertEqual([c.id for c in canvas_ops.search_canvases(canvases, "PRINT")], ["c"])
        self.assertEqual([c.id for c in canvas_ops.search_canvases(canvases, "bank")], ["d"])
        self.assertEqual(canvas_ops.search_canvases(canvases, "  "), canvases)
        self.assertEqual(canvas_ops.search_canvases(canvases, "nothing here"), [])

    def test_preview(self):
        long_text = "x" * 150
        self.assertEqual(canvas_ops.canvas_preview(playground("p")), "HTML/CSS/JS Playground")
        self.assertEqual(canvas_ops.canvas_preview(note("empty")), "No content")
        self.assertEqual(
            canvas_ops.canvas_preview(note("h", blocks=[
                Block(id="b0", type=BlockType.CODE, content=""),
                Block(id="b1", type=BlockType.HEADING, content="Title"),
            ])),
            "H: Title",
        )
        self.assertEqual(
            canvas_ops.canvas_preview(note("t", blocks=[Block(id="b1", type=BlockType.TEXT, content=long_text)])),
            "x" * canvas_ops.PREVIEW_LENGTH,
        )
        self.assertEqual(
            canvas_ops.canvas_preview(note("todo", blocks=[
                Block(id="b1", type=BlockType.TODO, content='{"checked":true,"text":"Ship it"}'),
            ])),
            "Ship it",
        )
        self.assertEqual(
            canvas_ops.canvas_preview(note("img", blocks=[Block(id="b1", type=BlockType.IMAGE, content="")])),
            "[image block]",
        )


class TestBlockOperations(unittest.TestCase):
    """Test adding, updating, deleting and reordering blocks."""

    def setUp(self):
        self.heading = Block(id="h", type=BlockType.HEADING, content="Heading")
        self.text1 = Block(id="t1", type=BlockType.TEXT, content="one")
        self.text2 = Block(id="t2", type=BlockType.TEXT, content="two")
        self.projects = [
            Project(id="p", name="P", canvases=[
                note("n", blocks=[self.heading, self.text1, self.text2]),
                playground("pg"),
            ]),
        ]

    def _blocks(self, projects):
        return find_project(projects, "p").canvases[0].blocks

    def test_add_block_is_appended(self):
        projects, block = block_ops.add_block(self.projects, "p", "n", BlockType.TEXT)

        self.assertEqual(self._blocks(projects)[-1], block)
        self.assertEqual(block.content, "")
        self.assertEqual(len(self._blocks(self.projects)), 3)

    def test_add_code_block_has_default_snippet(self):
        _, block = block_ops.add_block(self.projects, "p", "n", BlockType.CODE)

        content = decode_block(block)
        self.assertEqual(content.language, "javascript")
        self.assertEqual(content.code, "// Start coding...")

    def test_add_todo_block_is_unchecked(self):
        _, block = block_ops.add_block(self.projects, "p", "n", "TODO")

        content = decode_block(block)
        self.assertFalse(content.checked)
        self.assertEqual(content.text, "")

    def test_add_block_to_playground_is_noop(self):
        projects, block = block_ops.add_block(self.projects, "p", "pg", BlockType.TEXT)
        self.assertIs(projects, self.projects)
        self.assertIsNone(block)

    def test_update_block_keeps_position(self):
        projects = block_ops.update_block(
            self.projects, "p", "n", Block(id="t1", type=BlockType.TEXT, content="changed")
        )

        self.assertEqual([b.id for b in self._blocks(projects)], ["h", "t1", "t2"])
        self.assertEqual(self._blocks(projects)[1].content, "changed")
        self.assertEqual(self.text1.content, "one")

    def test_update_block_with_repeated_id_changes_first_only(self):
        duplicate = Block(id="t1", type=BlockType.TEXT, content="copy")
        projects = [Project(id="p", name="P", canvases=[note("n", blocks=[self.text1, self.text2, duplicate])])]

        updated = block_ops.update_block(projects, "p", "n", Block(id="t1", type=BlockType.TEXT, content="changed"))

        self.assertEqual([b.content for b in self._blocks(updated)], ["changed", "two", "copy"])

    def test_update_block_ignores_type_change(self):
        projects = block_ops.update_block(
            self.projects, "p", "n", Block(id="t1", type=BlockType.HEADING, content="changed")
        )

        self.assertEqual(self._blocks(projects)[1].type, BlockType.TEXT)
        self.assertEqual(self._blocks(projects)[1].content, "changed")

    def test_update_unknown_block_is_noop(self):
        projects = block_ops.update_block(
            self.projects, "p", "n", Block(id="ghost", type=BlockType.TEXT, content="x")
        )
        self.assertIs(projects, self.projects)

    def test_delete_block(self):
        projects = block_ops.delete_block(self.projects, "p", "n", "t1")

        self.assertEqual([b.id for b in self._blocks(projects)], ["h", "t2"])
        self.assertIs(block_ops.delete_block(self.projects, "p", "n", "ghost"), self.projects)

    def test_reorder_moves_first_to_last(self):
        projects = block_ops.reorder_blocks(self.projects, "p", "n", 0, 2)
        self.assertEqual([b.id for b in self._blocks(projects)], ["t1", "t2", "h"])

    def test_reorder_moves_last_to_first(self):
        projects = block_ops.reorder_blocks(self.projects, "p", "n", 2, 0)
        self.assertEqual([b.id for b in self._blocks(projects)], ["t2", "h", "t1"])

    def test_reorder_same_index_is_noop(self):
        self.assertIs(block_ops.reorder_blocks(self.projects, "p", "n", 1, 1), self.projects)

    def test_reorder_out_of_range_is_noop(self):
        self.assertIs(block_ops.reorder_blocks(self.projects, "p", "n", 0, 3), self.projects)
        self.assertIs(block_ops.reorder_blocks(self.projects, "p", "n", -1, 0), self.projects)

    def test_reorder_is_a_permutation(self):
        original = self._blocks(self.projects)
        for i in range(len(original)):
            for j in range(len(original)):
                with self.subTest(from_index=i, to_index=j):
                    reordered = self._blocks(block_ops.reorder_blocks(self.projects, "p", "n", i, j))
                    self.assertEqual(sorted(b.id for b in reordered), sorted(b.id for b in original))
                    self.assertEqual(reordered[j], original[i])

    def test_move_item(self):
        self.assertEqual(block_ops.move_item(["a", "b", "c"], 0, 1), ["b", "a", "c"])
        self.assertEqual(block_ops.move_item(["a", "b"], 5, 0), ["a", "b"])


if __name__ == '__main__':
    unittest.main(verbosity=2)
