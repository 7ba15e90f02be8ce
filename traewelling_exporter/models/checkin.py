from __future__ import annotations

import math
from dataclasses import astuple, dataclass
from decimal import Decimal

from traewelling_exporter.models.status import UpstreamStatus

# Order matters: it is the label order of the ``journeys`` gauge.
LABEL_NAMES: tuple[str, ...] = (
    "category",
    "distance",
    "line_name",
    "number",
    "duration",
    "speed",
    "user_id",
    "user_name",
    "origin",
    "destination",
)


def format_int(value: int) -> str:
    return str(int(value))


def format_speed(value: float) -> str:
    """Shortest decimal that round-trips, in plain notation.

    ``84.3 -> "84.3"``, ``100.0 -> "100"``, ``1e-05 -> "0.00001"``.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer():
        return str(int(value))
    # repr() gives the shortest digits; Decimal drops the exponent form
    return format(Decimal(repr(float(value))), "f")


@dataclass(frozen=True, slots=True)
class LabelTuple:
    """Label values identifying one ``journeys`` sample.

    Two check-ins with equal LabelTuples are indistinguishable on the
    exposition side and are counted together.
    """

    category: str
    distance: str
    line_name: str
    number: str
    duration: str
    speed: str
    user_id: str
    user_name: str
    origin: str
    destination: str

    @staticmethod
    def from_status(status: UpstreamStatus) -> LabelTuple:
        train = status.train
        return LabelTuple(
            category=train.category,
            distance=format_int(train.distance),
            line_name=train.line_name,
            number=train.number,
            duration=format_int(train.duration),
            speed=format_speed(train.speed),
            user_id=format_int(status.user_id),
            user_name=status.username,
            origin=train.origin.name,
            destination=train.destination.name,
        )

    def values(self) -> tuple[str, ...]:
        """Label values in LABEL_NAMES order."""
        return astuple(self)

    def as_labels(self) -> dict[str, str]:
        return dict(zip(LABEL_NAMES, self.values()))


# Aggregate: LabelTuple -> number of active check-ins with that tuple.
Aggregate = dict[LabelTuple, int]
