from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from traewelling_exporter.models.checkin import Aggregate, LabelTuple
from traewelling_exporter.models.status import UpstreamStatus


def aggregate(statuses: Iterable[UpstreamStatus]) -> Aggregate:
    """Count active check-ins per label tuple.

    Check-ins that project to the same LabelTuple would collide on the
    exposition side, so they are summed into one entry instead.  Every
    count in the result is at least 1 and the counts add up to the
    number of statuses.
    """
    return dict(Counter(LabelTuple.from_status(status) for status in statuses))
