"""Connected component selection on subject masks."""
import logging

import numpy as np
from scipy.ndimage import label

from shapefate.types import Mask, NoSubjectDetected

logger = logging.getLogger(__name__)


def extract_largest_region(mask: Mask) -> Mask:
    """
    Keep only the largest 4-connected component of a mask.

    Components are labeled in scan order, so on equal pixel counts the
    first component encountered wins.

    Args:
        mask: (H, W) bool mask

    Returns:
        (H, W) read-only bool mask containing a single component

    Raises:
        NoSubjectDetected: If the mask is empty
    """
    labeled, num_features = label(mask)
    if num_features == 0:
        raise NoSubjectDetected("Mask contains no subject pixels.")

    # Index 0 is the background label
    sizes = np.bincount(labeled.ravel())
    sizes[0] = 0
    largest = int(np.argmax(sizes))

    if num_features > 1:
        logger.debug(
            f"Kept region {largest} ({sizes[largest]} px), "
            f"dropped {num_features - 1} smaller regions"
        )

    region = labeled == largest
    region.flags.writeable = False
    return region
