#!/usr/bin/env python
"""Functions and classes used by more than one reader in this subpackage


Functions & classes
-------------------
:func:`get_identical_attributes`
    Return a dictionary of all key-value pairs that are common to all `attr`
    dictionaries in a set of |SegmentChains|

|AssembledFeatureReader|
    Base class for readers that assemble transcripts from one or more
    lines of an annotation file
"""
import itertools
from abc import abstractmethod

from riboqc.util.io.filters import AbstractReader
from riboqc.util.io.openers import NullWriter, multiopen, opener
from riboqc.genomics.roitools import SegmentChain, add_three_for_stop_codon


#===============================================================================
# INDEX: helper functions
#===============================================================================

def get_identical_attributes(features,exclude=None):
    """Return a dictionary of all key-value pairs that are identical for all |SegmentChains| in `features`

    Parameters
    ----------
    features : list
        list of |SegmentChains|

    exclude : set
        attributes to exclude from identity criteria

    Returns
    -------
    dict
    """
    exclude = set() if exclude is None else set(exclude)
    common_keys = set(features[0].attr.keys())
    for feature in features:
        common_keys &= set(feature.attr.keys())

    common_keys -= exclude

    first = features[0].attr
    return { K : first[K] for K in common_keys if all([X.attr[K] == first[K] for X in features]) }



#===============================================================================
# INDEX: classes
#===============================================================================

class AssembledFeatureReader(AbstractReader):
    """
    AssembledFeatureReader(*streams, return_type=SegmentChain, add_three_for_stop=False, printer=None, **kwargs)

    Abstract base class for readers that yield features such as transcripts,
    which may be assembled from several lines of an annotation file.

    Readers are iterators. Subclasses override :meth:`_assemble`, which
    receives one line of input and returns either a feature or `None` if the
    line does not complete a feature.

    Parameters
    ----------
    *streams : str or file-like
        One or more filenames or open filehandles of input data. Filenames
        ending in `.gz` or `.bz2` are decompressed

    return_type : |SegmentChain| or subclass, optional
        Type of feature to return (Default: |SegmentChain|)

    add_three_for_stop : bool, optional
        Some annotation files exclude the stop codon from CDS annotations. If
        `True`, extend the coding region of each feature by three nucleotides
        (Default: `False`)

    printer : file-like, optional
        Logger implementing a ``write()`` method. Default: |NullWriter|

    Attributes
    ----------
    counter : int
        Number of lines read

    metadata : dict
        Metadata from file headers or track lines

    rejected : list
        Lines or feature names that could not be assembled
    """

    def __init__(self,*streams,**kwargs):
        streams = multiopen(streams,fn=opener,kwargs=dict(mode="r"))
        self.stream  = itertools.chain.from_iterable(streams)
        self.counter = 0
        self.printer = kwargs.get("printer",NullWriter())

        self.return_type   = kwargs.get("return_type",SegmentChain)
        add_three_for_stop = kwargs.get("add_three_for_stop",False)
        self._finalize = add_three_for_stop_codon if add_three_for_stop else lambda x: x

        self.metadata = {}
        self.rejected = []

    @abstractmethod
    def _assemble(self,data):
        """Assemble a feature from `data`. Implement in subclasses.

        Returns
        -------
        |SegmentChain|, subclass, or None
            Feature, or `None` if `data` did not complete a feature
        """
        pass

    def filter(self,data):
        """Return the finalized feature assembled from `data`, or `None`"""
        feature = self._assemble(data)
        return None if feature is None else self._finalize(feature)

    def __next__(self):
        while True:
            feature = self.filter(next(self.stream))
            if feature is not None:
                return feature
