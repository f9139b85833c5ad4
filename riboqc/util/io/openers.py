#!/usr/bin/env python
"""Wrappers and utilities for opening, closing, and writing files.

Important methods
-----------------
:py:func:`argsopener`
    Open a file for writing within a command-line script, and write to it
    all command-line arguments as a commented-out block of metadata. The
    open filehandle is then returned for subsequent writing

:py:func:`read_pl_table`
    Open a table saved by one of the :mod:`riboqc.bin` scripts into a
    :class:`pandas.DataFrame`

:py:func:`opener`
    Open a file as gzipped, bzipped or plain text, guessing from its extension

:py:class:`NullWriter`
    An open filehandle to the system's null location
"""
import os
import re
import sys
import datetime

from collections.abc import Iterable

import pandas as pd
from riboqc.util.io.filters import AbstractWriter


class NullWriter(AbstractWriter):
    """Writes to system-dependent null location (`/dev/null`, or `nul` on Windows)"""

    def __init__(self):
        self.stream = open(os.devnull,"w")

    def filter(self,stream):
        return stream

    def __repr__(self):
        return "NullWriter()"

    def __str__(self):
        return self.__repr__()


def multiopen(inp,fn=None,args=None,kwargs=None):
    """Normalize a filename, file-like object, or list of either into a
    sequence of open objects.

    Strings are passed through `fn`; anything else is yielded as-is.

    Parameters
    ----------
    inp : str, file-like, or list-like of either of those
        Input describing file(s) to open

    fn : callable, optional
        Callable to apply to filenames to open them

    args : tuple, optional
        Positional arguments to pass to `fn`

    kwargs : dict, optional
        Keyword arguments to pass to `fn`

    Yields
    ------
    object
        Result of applying `fn` to filename(s) in `inp`
    """
    if fn is None:
        fn = lambda x, *y, **z: x

    args   = () if args is None else args
    kwargs = {} if kwargs is None else kwargs

    # open files are iterable too, but count as one input
    if isinstance(inp,str) or hasattr(inp,"read"):
        out = [inp]
    elif isinstance(inp,Iterable):
        out = inp
    else:
        out = [inp]

    for obj in out:
        if isinstance(obj,str):
            yield fn(obj,*args,**kwargs)
        else:
            yield obj


def opener(filename,mode="r",**kwargs):
    """Open a file, detecting whether it is compressed from its extension:

       ================   ==================
       File ends with     Presumed to be
       ----------------   ------------------
       gz                 gzipped
       bz2                bzipped
       anything else      uncompressed
       ================   ==================

    Compressed files are opened in text mode unless `'b'` is in `mode`.

    Parameters
    ----------
    filename : str
        Name of file to open

    mode : str
        Mode in which to open file (e.g. `'r'`, `'w'`, `'a'`, with or without `'b'`)

    **kwargs
        Other parameters to pass to the underlying opener

    Returns
    -------
    file-like
    """
    if filename.endswith(".gz"):
        import gzip
        call_func = gzip.open
    elif filename.endswith(".bz2"):
        import bz2
        call_func = bz2.open
    else:
        return open(filename,mode,**kwargs)

    if "b" not in mode and "t" not in mode:
        mode += "t"

    return call_func(filename,mode,**kwargs)


def read_pl_table(filename,**kwargs):
    """Open a table saved by one of the :mod:`riboqc.bin` scripts,
    passing these defaults to :func:`pandas.read_csv`:

        ==========   =======
        Key          Value
        ----------   -------
        sep          `"\\t"`
        comment      `"#"`
        index_col    `None`
        header       `0`
        ==========   =======

    Parameters
    ----------
    filename : str
        Name of file. Can be gzipped or bzipped.

    kwargs : keyword arguments
        Other keyword arguments to pass to :func:`pandas.read_csv`.
        These override the defaults.

    Returns
    -------
    :class:`pandas.DataFrame`
    """
    args = { "sep"        : "\t",
             "comment"    : "#",
             "index_col"  : None,
             "header"     : 0,
           }
    args.update(kwargs)
    return pd.read_csv(filename,**args)


def get_short_name(inpt,separator=os.path.sep,terminator=""):
    """Give the basename of a filename or module name passed as a string.
    If the string doesn't match the pattern specified by `separator`
    and `terminator`, it is returned unchanged.

    Examples
    --------
    >>> get_short_name("test.py",terminator=".py")
    'test'

    >>> get_short_name("/home/jdoe/test.py",terminator=".py")
    'test'

    >>> get_short_name("riboqc.bin.psite",separator=r"\\.")
    'psite'

    Parameters
    ----------
    inpt : str
        Input

    separator : str, optional
        Path separator, as a regex character class member (Default: :obj:`os.path.sep`)

    terminator : str, optional
        Suffix to remove (Default: `''`)

    Returns
    -------
    str
    """
    tlen = len(terminator)
    if tlen > 0 and inpt.endswith(terminator):
        inpt = inpt[:-tlen]

    pat = r"([^%s]+)$" % separator
    match = re.search(pat,inpt)
    if match is None:
        return inpt

    return match.group(1)


def argsopener(filename,namespace,mode="w",**kwargs):
    """Open a file for writing, and write to it command-line arguments
    formatted as a commented-out dictionary of metadata.

    Parameters
    ----------
    filename : str
        Name of file to open. If it ends in `'.gz'` or `'.bz2'`
        the filehandle will write compressed output

    namespace : :py:class:`argparse.Namespace`
        Namespace object from :class:`argparse.ArgumentParser`

    mode : str
        Mode of writing (`'w'` or `'a'`)

    **kwargs
        Other keyword arguments to pass to :func:`opener`

    Returns
    -------
    open filehandle
    """
    if "w" not in mode and "a" not in mode:
        mode += "w"
    fout = opener(filename,mode,**kwargs)
    fout.write(args_to_comment(namespace))
    return fout


def args_to_comment(namespace):
    """Format a :class:`argparse.Namespace` into a comment block for the
    header of an output file

    Parameters
    ----------
    namespace  : :py:class:`argparse.Namespace`
        Namespace object returned by :class:`argparse.ArgumentParser`

    Returns
    -------
    str
    """
    dtmp = namespace.__dict__
    ltmp = ["## date = '%s'" % datetime.datetime.today(),
            "## execstr = '%s'" % " ".join(sys.argv),
            "## args = {  ",
            ]
    ltmp2 = ["##" + X for X in pretty_print_dict(dtmp).split("\n")[1:-2]]
    return "\n".join(ltmp) + "\n" + "\n".join(ltmp2) + "\n##        }\n"


def pretty_print_dict(dtmp):
    """Pretty print an un-nested dictionary

    Parameters
    ----------
    dtmp : dict

    Returns
    -------
    str
        pretty-printed dictionary
    """
    ltmp = []
    if len(dtmp) == 0:
        return "{\n\n}\n"

    maxlen = 2 + max([len(str(K)) for K in dtmp])
    for k,v in sorted(dtmp.items(),key=lambda x: str(x[0])):
        if isinstance(v,str):
            v = "'%s'" % v
        new_k = "'%s'" % k
        ltmp.append(("          {0:<%s} : {1}," % maxlen).format(new_k,v))

    return "{\n%s\n}\n" % "\n".join(ltmp)
