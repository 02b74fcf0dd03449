"""Tests for stitching a tile matrix into one raster."""

import pytest
from PIL import Image, ImageChops

from map_extractor.compositor import Compositor
from map_extractor.errors import CompositionPrecondition

from conftest import make_tile


def gradient_tile(seed, size=8):
    """Tile with distinct pixels so swapped or shifted blocks are caught."""
    tile = Image.new("RGBA", (size, size))
    tile.putdata([((seed * 40 + i) % 256, (i * 3) % 256, seed % 256, 255) for i in range(size * size)])
    return tile


class TestCompose:

    def test_output_edge(self):
        matrix = [[make_tile((0, 0, 0, 255)) for _ in range(3)] for _ in range(3)]
        raster = Compositor.compose(matrix)
        assert raster.size == (768, 768)

    def test_blocks_are_exact_copies(self):
        size = 8
        matrix = [[gradient_tile(r * 3 + c, size) for c in range(3)] for r in range(3)]
        raster = Compositor.compose(matrix)
        for r in range(3):
            for c in range(3):
                block = raster.crop((c * size, r * size, (c + 1) * size, (r + 1) * size))
                assert ImageChops.difference(block, matrix[r][c]).getbbox() is None

    def test_column_is_horizontal(self):
        red, blue = (255, 0, 0, 255), (0, 0, 255, 255)
        matrix = [
            [make_tile(red, 4), make_tile(blue, 4)],
            [make_tile(blue, 4), make_tile(blue, 4)],
        ]
        matrix[0][1] = make_tile((0, 255, 0, 255), 4)
        raster = Compositor.compose(matrix)
        # [0][1] lies to the right of the origin block, not below it
        assert raster.getpixel((5, 0)) == (0, 255, 0, 255)
        assert raster.getpixel((0, 5)) == blue
        assert raster.getpixel((0, 0)) == red

    def test_single_tile(self, red_tile):
        raster = Compositor.compose([[red_tile]])
        assert raster.size == red_tile.size


class TestPreconditions:

    def test_empty(self):
        with pytest.raises(CompositionPrecondition):
            Compositor.compose([])

    def test_missing_cell(self):
        matrix = [[make_tile((0, 0, 0, 255), 4), None], [make_tile((0, 0, 0, 255), 4)] * 2]
        with pytest.raises(CompositionPrecondition):
            Compositor.compose(matrix)

    def test_ragged_rows(self):
        tile = make_tile((0, 0, 0, 255), 4)
        with pytest.raises(CompositionPrecondition):
            Compositor.compose([[tile, tile], [tile]])

    def test_mismatched_size(self):
        matrix = [[make_tile((0, 0, 0, 255), 4), make_tile((0, 0, 0, 255), 8)]] * 2
        with pytest.raises(CompositionPrecondition):
            Compositor.compose(matrix)

    def test_mismatched_mode(self):
        matrix = [[make_tile((0, 0, 0, 255), 4), make_tile((0, 0, 0), 4, mode="RGB")]] * 2
        with pytest.raises(CompositionPrecondition):
            Compositor.compose(matrix)
