#!/usr/bin/env python
"""Stream filters, analagous to Unix-style pipes, that are wrapped around
open file-like objects to process text on the way in or out.

Readers
-------
    :class:`AbstractReader`
        Base class for all readers. Subclass this and override
        :py:meth:`~AbstractReader.filter`

    :class:`CommentReader`
        Skip lines beginning with `'#'`, saving them for later inspection

    :class:`SkipBlankReader`
        Skip blank or whitespace-only lines

Writers
-------
    :class:`AbstractWriter`
        Base class for all writers. Subclass this and override
        :py:meth:`~AbstractWriter.filter`

    :class:`ColorWriter`
        Enables ANSI coloring of text if the output stream supports it

    :class:`NameDateWriter`
        Prepend program name, date and time to each line written. This is the
        progress logger used by every command-line script in :mod:`riboqc.bin`

And one convenience function:

    :func:`colored`
        Colorize text via :func:`termcolor.colored` if and only if
        :obj:`sys.stderr` supports color


Examples
--------
Skip comments and blank lines in a tab-delimited table::

    >>> reader = CommentReader(SkipBlankReader(open("some_file.txt")))
    >>> for line in reader:
    >>>     pass

Log progress to stderr, prefixed with the program name and a timestamp::

    >>> printer = NameDateWriter("psite")
    >>> printer.write("Counted 1000 windows...")
"""
import sys
import datetime
from abc import abstractmethod
from io import IOBase

import termcolor

if hasattr(sys.stderr,"isatty") and sys.stderr.isatty():
    colored = termcolor.colored
else:
    colored = lambda x, **kwargs: str(x)



#===============================================================================
# INDEX: readers
#===============================================================================

class AbstractReader(IOBase):
    """Abstract base class for stream-reading filters.

    Create a filter by subclassing this and defining `self.filter()`

    Parameters
    ----------
    stream : file-like
        Input data
    """

    def __init__(self,stream):
        self.stream = stream

    def isatty(self):
        return hasattr(self.stream,"isatty") and self.stream.isatty()

    def writable(self):
        return False

    def seekable(self):
        return False

    def readable(self):
        return True

    def fileno(self):
        raise IOError()

    def __next__(self):
        return self.filter(next(self.stream))

    def __iter__(self):
        return self

    def read(self):
        """Process all remaining units of data, assuming they are string-like

        Returns
        -------
        str
        """
        return "".join(self.readlines())

    def readline(self):
        """Process a single line of data

        Returns
        -------
        object
            a unit of processed data
        """
        return next(self)

    def readlines(self):
        """Process all remaining units of data

        Returns
        -------
        list
            processed data
        """
        return [X for X in self]

    def close(self):
        """Close stream"""
        try:
            self.stream.close()
        except AttributeError:
            pass

    @abstractmethod
    def filter(self,data):
        """Filter or process each unit of data. Override this in subclasses

        Parameters
        ----------
        data : unit of data
            Whatever data to filter/format. Often string, but not necessarily

        Returns
        -------
        object
            formatted data
        """
        pass


class SkipBlankReader(AbstractReader):
    """Ignores blank/whitespace-only lines in a text stream"""

    def filter(self,line):
        if len(line.strip()) == 0:
            return self.__next__()
        else:
            return line


class CommentReader(AbstractReader):
    """Ignore lines beginning with `'#'`, optionally preceded by whitespace.
    Comments beginning mid-line are left in place. Skipped comments are
    kept in `self.comments`
    """

    def __init__(self,stream):
        self.comments = []
        AbstractReader.__init__(self,stream)

    def get_comments(self):
        """Return all of the comments found so far

        Returns
        -------
        list
            Comments found in text
        """
        return self.comments

    def filter(self,line):
        ltmp = line.lstrip()
        if len(ltmp) > 1 and ltmp[0] == "#":
            self.comments.append(line.strip())
            return self.__next__()
        else:
            return line



#===============================================================================
# INDEX: writers
#===============================================================================

class AbstractWriter(IOBase):
    """Abstract base class for stream-writing filters.
    Create a filter by subclassing this, and defining `self.filter()`.

    Parameters
    ----------
    stream : file-like, open for writing
        Output stream to which filtered/formatted data will be written
    """
    def __init__(self,stream):
        self.stream = stream

    def isatty(self):
        return hasattr(self.stream,"isatty") and self.stream.isatty()

    def writable(self):
        return True

    def seekable(self):
        return False

    def readable(self):
        return False

    def fileno(self):
        raise IOError()

    def write(self,data):
        """Write filtered `data` to `self.stream`

        Parameters
        ----------
        data : unit of data
            Whatever data to filter/format. Often string, but not necessarily
        """
        self.stream.write(self.filter(data))

    def flush(self):
        """Flush `self.stream`"""
        self.stream.flush()

    def close(self):
        """flush and close `self.stream`"""
        try:
            self.flush()
            self.stream.close()
        except (AttributeError,ValueError):
            pass

    @abstractmethod
    def filter(self,data):
        """Filter or process each unit of data. Override this in subclasses

        Parameters
        ----------
        data : unit of data

        Returns
        -------
        object
            formatted data
        """
        pass


class ColorWriter(AbstractWriter):
    """Detect whether output stream supports color, and enable/disable colored output

    Parameters
    ----------
    stream : file-like
        Stream to write to (Default: :obj:`sys.stderr`)
    """
    def __init__(self,stream=None):
        stream = sys.stderr if stream is None else stream
        AbstractWriter.__init__(self,stream=stream)
        if hasattr(self.stream,"isatty") and self.stream.isatty():
            self.color = termcolor.colored

    def color(self,text,**kwargs):
        """Color `text` with attributes specified in `kwargs` if `stream`
        supports ANSI color. See :func:`termcolor.colored` for usage

        Returns
        -------
        str
            `text`, colored as indicated, if color is supported
        """
        return text

    def filter(self,data):
        return data


class NameDateWriter(ColorWriter):
    """Prepend program name, date, and time to each line of output

    Parameters
    ----------
    name : str
        Name to prepend

    line_delimiter : str, optional
        Delimiter, postpended to lines. (Default `'\\n'`)

    stream : file-like
        Stream to write to (Default: :obj:`sys.stderr`)
    """

    def __init__(self,name,line_delimiter="\n",stream=None):
        ColorWriter.__init__(self,stream=stream)
        self.name = name
        self.delimiter = line_delimiter
        self.fmtstr = "%s %s%s %s%s: {2}%s" % (self.color(name,color="blue",attrs=["bold"]),
                                               self.color("[",color="blue",attrs=["bold"]),
                                               self.color("{0}",color="green"),
                                               self.color("{1}",color="green",attrs=["bold"]),
                                               self.color("]",color="blue",attrs=["bold"]),
                                               self.delimiter
                                              )

    def filter(self,line):
        """Prepend date and time to `line`

        Parameters
        ----------
        line : str
            Input

        Returns
        -------
        str : Input with name, date and time prepended
        """
        now = datetime.datetime.now()
        d   = now.strftime("%Y-%m-%d")
        t   = now.strftime("%H:%M:%S")
        return self.fmtstr.format(d,t,line.strip(self.delimiter))

    def __call__(self,line):
        self.write(line)
