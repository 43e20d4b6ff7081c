"""
rangewell: an algebra of genomic intervals
------------------------------------------

The package contains the following modules:

    - :py:mod:`~rangewell.interval` -- A single closed, 1-based interval
    - :py:mod:`~rangewell.rle` -- Run-length encoded vectors
    - :py:mod:`~rangewell.interval_set` -- Ordered collections of intervals, with reduce and
        disjoin
    - :py:mod:`~rangewell.annotated` -- Interval sets annotated with sequence names, strands and
        metadata
    - :py:mod:`~rangewell.grouped` -- Keyed collections of interval sets
    - :py:mod:`~rangewell.overlaps` -- Finding and counting overlaps between interval sets
    - :py:mod:`~rangewell.coverage` -- Per-position coverage of interval sets
    - :py:mod:`~rangewell.sources` -- Building interval sets from loaded records
"""
