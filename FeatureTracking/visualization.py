"""
Optional observers of the tracking pipeline.

Observers are notified after every stage of every frame. They only look at
the records; nothing they do feeds back into the pipeline or its statistics.
"""

import cv2
import numpy as np
from typing import Optional

from .core_data_structures import FrameRecord, FrameState
from .logger import get_logger

logger = get_logger("visualization")


class FrameObserver:
    """Base observer; ignores every notification"""

    def on_stage(self, record: FrameRecord, previous: Optional[FrameRecord] = None):
        """
        Called after a frame reached record.state

        Args:
            record: Frame that just completed a stage
            previous: Frame it was matched against (only for MATCHED)
        """
        pass


class OpenCVVisualizer(FrameObserver):
    """
    Shows the filtered keypoints and the matches between consecutive frames
    in OpenCV windows, waiting for a key press after each one.
    """

    KEYPOINTS_WINDOW = "Focused keypoints"
    MATCHES_WINDOW = "Matching keypoints between two camera images"

    def __init__(self, wait: bool = True):
        self.wait = wait
        self.enabled = True

    def on_stage(self, record: FrameRecord, previous: Optional[FrameRecord] = None):
        if not self.enabled:
            return
        try:
            if record.state is FrameState.FILTERED:
                self._show(self.KEYPOINTS_WINDOW, self.draw_keypoints(record))
            elif record.state is FrameState.MATCHED and previous is not None:
                self._show(self.MATCHES_WINDOW, self.draw_matches(previous, record))
        except cv2.error as e:
            # typically a headless OpenCV build
            logger.warning(f"Visualization disabled, cannot open window: {e}")
            self.enabled = False

    @staticmethod
    def draw_keypoints(record: FrameRecord) -> np.ndarray:
        return cv2.drawKeypoints(record.image, record.keypoints, None)

    @staticmethod
    def draw_matches(previous: FrameRecord, current: FrameRecord) -> np.ndarray:
        return cv2.drawMatches(
            previous.image, previous.keypoints,
            current.image, current.keypoints,
            current.matches, None,
            matchColor=(-1, -1, -1, -1),
            singlePointColor=(-1, -1, -1, -1),
            flags=cv2.DRAW_MATCHES_FLAGS_DRAW_RICH_KEYPOINTS
        )

    def _show(self, window_name: str, image: np.ndarray):
        cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
        cv2.imshow(window_name, image)
        if self.wait:
            print("Press key to continue to next image")
            cv2.waitKey(0)
        else:
            cv2.waitKey(1)
