"""Tests for largest region selection."""
import numpy as np
import pytest

from shapefate.regions import extract_largest_region
from shapefate.types import NoSubjectDetected


class TestExtractLargestRegion:
    """Test cases for extract_largest_region."""

    def test_keeps_largest_island(self):
        mask = np.zeros((50, 50), dtype=bool)
        mask[10:40, 10:40] = True
        mask[0, 0] = True
        mask[45:48, 45:48] = True

        region = extract_largest_region(mask)

        assert region[10:40, 10:40].all()
        assert not region[0, 0]
        assert not region[46, 46]
        assert region.sum() == 30 * 30

    def test_diagonal_pixels_are_separate(self):
        """Connectivity is 4-neighbour, so diagonal contact does not join regions."""
        mask = np.zeros((10, 10), dtype=bool)
        mask[2:5, 2:5] = True
        mask[5:7, 5:7] = True

        region = extract_largest_region(mask)

        assert region.sum() == 9
        assert not region[5, 5]

    def test_tie_keeps_first_in_scan_order(self):
        mask = np.zeros((20, 20), dtype=bool)
        mask[12:15, 2:5] = True
        mask[2:5, 12:15] = True

        region = extract_largest_region(mask)

        assert region[2:5, 12:15].all()
        assert not region[12:15, 2:5].any()

    def test_empty_mask(self):
        with pytest.raises(NoSubjectDetected):
            extract_largest_region(np.zeros((10, 10), dtype=bool))
