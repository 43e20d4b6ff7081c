"""
Building Interval Sets from Loaded Records
------------------------------------------

:py:mod:`rangewell` does not read any file format itself.  This module converts records that have
already been loaded elsewhere into interval sets:

    - :func:`~rangewell.sources.from_tuples` -- Builds a set from plain tuples of
        ``(start, end)`` or ``(start, end, seqname[, strand[, metadata]])``
    - :func:`~rangewell.sources.from_alignments` -- Builds an annotated set from the reference
        spans of :class:`~pysam.AlignedSegment` records

Examples
~~~~~~~~

.. code-block:: python

    >>> from rangewell.sources import from_tuples
    >>> from_tuples([(1, 5), (4, 8)])
    IntervalSet(intervals=(Interval(1, 5), Interval(4, 8)))
    >>> from_tuples([(1, 5, "chr1", "+", {"gene": "a"})]).to_rows()
    [{'seqname': 'chr1', 'start': 1, 'end': 5, 'strand': '+', 'gene': 'a'}]

Alignments are typically read with :py:mod:`pysam`:

.. code-block:: python

    >>> import pysam
    >>> from rangewell.sources import from_alignments
    >>> with pysam.AlignmentFile("/path/to/sample.bam") as reader:
    ...     reads = from_alignments(reader, min_mapping_quality=20)
    >>> reads.columns
    ['query_name', 'mapping_quality']

pysam reports 0-based, half-open reference coordinates; these are converted to the 1-based,
closed coordinates used throughout :py:mod:`rangewell`.
"""

import logging
from typing import Any
from typing import Dict
from typing import Iterable
from typing import List
from typing import Mapping
from typing import Sequence
from typing import Union

import pysam

from rangewell.annotated import AnnotatedIntervalSet
from rangewell.annotated import Strand
from rangewell.errors import ValidationError
from rangewell.interval import Interval
from rangewell.interval_set import IntervalSet


def from_tuples(rows: Iterable[Sequence[Any]]) -> Union[IntervalSet, AnnotatedIntervalSet]:
    """Builds an interval set from plain tuples.

    All rows must have the same number of fields:

        - ``(start, end)`` rows build an :class:`~rangewell.interval_set.IntervalSet`
        - ``(start, end, seqname)``, ``(start, end, seqname, strand)`` and
          ``(start, end, seqname, strand, metadata)`` rows build an
          :class:`~rangewell.annotated.AnnotatedIntervalSet`.  The metadata is a mapping from
          column name to value; a row missing a column holds ``None`` for it.

    Args:
        rows: the rows, with 1-based closed coordinates
    """
    rows = [tuple(row) for row in rows]
    if not rows:
        return IntervalSet.empty()

    num_fields = len(rows[0])
    for i, row in enumerate(rows):
        if len(row) != num_fields:
            raise ValidationError(f"Row has {len(row)} fields, expected {num_fields}", index=i)
    if num_fields not in (2, 3, 4, 5):
        raise ValidationError(f"Rows must have between 2 and 5 fields, found {num_fields}")

    intervals = IntervalSet.from_pairs((row[0], row[1]) for row in rows)
    if num_fields == 2:
        return intervals

    strands = [row[3] for row in rows] if num_fields >= 4 else None
    metadata: Dict[str, List[Any]] = {}
    if num_fields == 5:
        for i, row in enumerate(rows):
            if not isinstance(row[4], Mapping):
                raise ValidationError(f"Expected a mapping of metadata, found {row[4]!r}",
                                      field="metadata", index=i)
        names = list(dict.fromkeys(name for row in rows for name in row[4]))
        metadata = {name: [row[4].get(name) for row in rows] for name in names}

    return AnnotatedIntervalSet.build(intervals=intervals,
                                      seqnames=[str(row[2]) for row in rows],
                                      strands=strands,
                                      metadata=metadata)


def from_alignments(records: Iterable[pysam.AlignedSegment],
                    min_mapping_quality: int = 0,
                    primary_only: bool = False) -> AnnotatedIntervalSet:
    """Builds an annotated set from the reference spans of aligned records.

    Unmapped records, and mapped records without any aligned reference bases, are skipped.  The
    strand is negative for reverse-strand alignments and positive otherwise.  The metadata columns
    are ``query_name`` and ``mapping_quality``.

    Args:
        records: the alignment records
        min_mapping_quality: skip records with a lower mapping quality
        primary_only: skip secondary and supplementary records
    """
    intervals: List[Interval] = []
    seqnames: List[str] = []
    strands: List[Strand] = []
    query_names: List[str] = []
    mapping_qualities: List[int] = []
    num_skipped = 0

    for record in records:
        if record.is_unmapped or record.reference_end is None \
                or record.mapping_quality < min_mapping_quality \
                or (primary_only and (record.is_secondary or record.is_supplementary)):
            num_skipped += 1
            continue
        intervals.append(Interval(start=record.reference_start + 1, end=record.reference_end))
        seqnames.append(record.reference_name)
        strands.append(Strand.Negative if record.is_reverse else Strand.Positive)
        query_names.append(record.query_name)
        mapping_qualities.append(record.mapping_quality)

    logging.getLogger(__name__).debug("Built %d intervals from alignments, skipped %d records",
                                      len(intervals), num_skipped)
    return AnnotatedIntervalSet.build(
        intervals=IntervalSet(intervals),
        seqnames=seqnames,
        strands=strands,
        metadata={"query_name": query_names, "mapping_quality": mapping_qualities})
