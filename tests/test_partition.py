import pytest

from mandelbrot_tga import Chunk, InvalidWorkerCount, Viewport, partition_columns, pixel_to_complex
from mandelbrot_tga.partition import sample_grid


@pytest.mark.parametrize("width", [1, 2, 7, 64, 1280])
@pytest.mark.parametrize("workers", [1, 2, 3, 5, 7, 16])
def test_chunks_partition_columns_exactly(width, workers):
    if workers > width:
        pytest.skip("more workers than columns")
    chunks = partition_columns(width, workers)

    assert len(chunks) == workers
    covered = [col for chunk in chunks for col in chunk.columns()]
    assert covered == list(range(width))
    assert [chunk.index for chunk in chunks] == list(range(workers))
    for left, right in zip(chunks, chunks[1:]):
        assert left.end == right.start


def test_last_chunk_absorbs_remainder():
    chunks = partition_columns(10, 3)

    assert [(c.start, c.end) for c in chunks] == [(0, 3), (3, 6), (6, 10)]
    assert chunks[-1].width == 4


def test_single_worker_covers_whole_image():
    assert partition_columns(1280, 1) == [Chunk(index=0, start=0, end=1280)]


def test_one_worker_per_column():
    chunks = partition_columns(5, 5)

    assert all(chunk.width == 1 for chunk in chunks)


@pytest.mark.parametrize("workers", [0, -1, 5, 2.0, True, "2"])
def test_invalid_worker_counts(workers):
    with pytest.raises(InvalidWorkerCount) as excinfo:
        partition_columns(4, workers)
    assert excinfo.value.width == 4
    assert isinstance(excinfo.value, ValueError)


def test_pixel_to_complex_corners():
    viewport = Viewport()

    assert pixel_to_complex(viewport, 1280, 960, 0, 0) == complex(-2.0, 1.125)
    assert pixel_to_complex(viewport, 4, 2, 2, 1) == complex(-0.5, 0.0)


def test_pixel_to_complex_is_deterministic():
    viewport = Viewport(left=-0.75, right=-0.74, top=0.11, bottom=0.1)
    first = [pixel_to_complex(viewport, 33, 17, x, y) for x in range(33) for y in range(17)]
    second = [pixel_to_complex(viewport, 33, 17, x, y) for x in range(33) for y in range(17)]

    assert first == second


def test_sample_grid_matches_scalar_mapping():
    viewport = Viewport(left=-1.5, right=0.5, top=1.0, bottom=-1.0)
    chunk = Chunk(index=1, start=3, end=7)
    real, imag = sample_grid(viewport, 11, 5, chunk)

    assert real.shape == (5, 4)
    for row in range(5):
        for offset, col in enumerate(chunk.columns()):
            expected = pixel_to_complex(viewport, 11, 5, col, row)
            assert real[row, offset] == expected.real
            assert imag[row, offset] == expected.imag
