"""Crop and scale geometry for re-framing a video to a target aspect ratio.

All arithmetic is exact (``fractions.Fraction``); every emitted dimension is
floored to an even number because yuv420 chroma subsampling rejects odd sizes.
"""

from fractions import Fraction
from math import floor
from typing import Optional, Union
from vproc.domain.models import GeometryPlan, OrientationClass, ScaleAxis, ScaleMode

Number = Union[int, Fraction]

MIN_DIMENSION = 2


class GeometryError(ValueError):
    """Raised when a frame is too small to produce a non-empty crop."""


def floor_to_even(value: Number) -> int:
    """Largest even integer <= value."""
    return 2 * floor(Fraction(value) / 2)


def classify_orientation(effective_width: int, effective_height: int) -> OrientationClass:
    if effective_width < effective_height:
        return OrientationClass.VERTICAL
    if effective_width == effective_height:
        return OrientationClass.SQUARE
    return OrientationClass.HORIZONTAL


def select_scale_axis(
    scale_mode: ScaleMode,
    orientation: OrientationClass,
    crop_width: int,
    crop_height: int,
) -> ScaleAxis:
    if scale_mode == ScaleMode.AUTO:
        return ScaleAxis.HEIGHT if orientation == OrientationClass.VERTICAL else ScaleAxis.WIDTH
    if scale_mode == ScaleMode.WIDTH:
        return ScaleAxis.WIDTH
    if scale_mode == ScaleMode.HEIGHT:
        return ScaleAxis.HEIGHT
    if scale_mode == ScaleMode.LONG:
        return ScaleAxis.WIDTH if crop_width >= crop_height else ScaleAxis.HEIGHT
    if scale_mode == ScaleMode.SHORT:
        return ScaleAxis.WIDTH if crop_width <= crop_height else ScaleAxis.HEIGHT
    raise ValueError(f"Unsupported scale mode: {scale_mode}")


def _even_dimension(value: Number) -> int:
    return max(MIN_DIMENSION, floor_to_even(value))


def compute_geometry(
    source_width: int,
    source_height: int,
    target_ratio: Optional[Fraction],
    scale_value: int,
    scale_mode: ScaleMode,
    orientation: OrientationClass,
) -> GeometryPlan:
    """Computes the centered crop and output size for one source frame.

    Args:
        source_width: Rotation-corrected frame width.
        source_height: Rotation-corrected frame height.
        target_ratio: Desired width/height ratio, or None to keep the source ratio.
        scale_value: Size in pixels pinned on the selected axis.
        scale_mode: Policy choosing the pinned axis.
        orientation: Orientation class of the (rotation-corrected) source.

    Raises:
        GeometryError: if the source (or its crop) is narrower than two pixels.
    """
    if source_width < MIN_DIMENSION or source_height < MIN_DIMENSION:
        raise GeometryError(f"Frame too small to crop: {source_width}x{source_height}")

    current = Fraction(source_width, source_height)
    target = current if target_ratio is None else Fraction(target_ratio)

    # Height first, width derived from it: the crop ratio is off from the
    # target by less than 2/crop_height.
    if current < target:
        # Taller than target: trim top and bottom.
        crop_height = floor_to_even(source_width / target)
    else:
        crop_height = floor_to_even(source_height)
    crop_width = floor_to_even(crop_height * target)

    if crop_width < MIN_DIMENSION or crop_height < MIN_DIMENSION:
        raise GeometryError(
            f"Crop of {source_width}x{source_height} to ratio {target} is empty"
        )

    offset_x = floor_to_even(Fraction(source_width - crop_width, 2))
    offset_y = floor_to_even(Fraction(source_height - crop_height, 2))

    scaled_by = select_scale_axis(scale_mode, orientation, crop_width, crop_height)
    pinned = _even_dimension(scale_value)

    if scaled_by == ScaleAxis.WIDTH:
        output_width = pinned
        output_height = _even_dimension(Fraction(crop_height * pinned, crop_width))
    else:
        output_height = pinned
        output_width = _even_dimension(Fraction(crop_width * pinned, crop_height))

    return GeometryPlan(
        crop_width=crop_width,
        crop_height=crop_height,
        crop_offset_x=offset_x,
        crop_offset_y=offset_y,
        output_width=output_width,
        output_height=output_height,
        scaled_by=scaled_by,
    )
