#!/usr/bin/env python
"""Custom exception and warning classes, a custom warning filter action
called `"onceperfamily"`, and a more legible warning format.

The `onceperfamily` action
--------------------------
`onceperfamily` groups warning messages into families by regular expression,
and only shows the first warning that matches a given family. In contrast,
Python's native `once` action shows every distinct string once, which for
messages that embed a read length or transcript name means every message.

Use :func:`filterwarnings` to create the filter, and :func:`warn` to issue
warnings that respect it. :func:`filterwarnings` also accepts every action
understood by :func:`warnings.filterwarnings`.


Exception types
---------------
|MalformedFileError|
    Raised when a file cannot be parsed and execution must halt


Warning types
-------------
|ArgumentWarning|
    Command-line arguments that are nonsensical but recoverable

|FileFormatWarning|
    Slightly malformed but usable files

|DataWarning|
    Data with unexpected but recoverable values, e.g. a coding region
    whose length is not divisible by three, or reads for which no P-site
    offset is known
"""
import re
import inspect
import linecache
import textwrap
import warnings

from riboqc.util.io.filters import colored

_wrapper = textwrap.TextWrapper(break_long_words=False,width=77)



#===============================================================================
# INDEX: Warning and exception classes
#===============================================================================

class MalformedFileError(Exception):
    """Exception class for when files cannot be parsed as they should be

    Parameters
    ----------
    filename : str
        Name of file causing problem

    message : str
        Message explaining how the file is malformed.

    line_num : int or None, optional
        Number of line causing problems
    """

    def __init__(self,filename,message,line_num=None):
        Exception.__init__(self,filename,message,line_num)
        self.filename = filename
        self.msg      = message
        self.line_num = line_num

    def __str__(self):
        if self.line_num is None:
            return "Error opening file '%s': %s" % (self.filename,self.msg)
        else:
            return "Error opening file '%s' at line %s: %s" % (self.filename,self.line_num,self.msg)


class ArgumentWarning(Warning):
    """Warning for nonsensical but recoverable combinations of command-line arguments"""
    pass


class FileFormatWarning(Warning):
    """Warning for slightly malformed but usable files"""
    pass


class DataWarning(Warning):
    """Warning for unexpected attributes of data, raised when data has
    nonsensical but recoverable values, or when values are outside the
    domain of an operation but the operation can be skipped"""
    pass



#===============================================================================
# INDEX: extensions to Python warnings
#===============================================================================

rq_once_registry = {}
"""Registry of `onceperfamily` warnings seen in the current execution context"""

rq_filters = []
"""Filters for the `onceperfamily` action, which Python's own warnings module does not know"""


def filterwarnings(action,message="",category=Warning,module="",lineno=0,append=False):
    """Insert an entry into the warnings filter. Behaves like
    :func:`warnings.filterwarnings`, except the additional action
    `'onceperfamily'` shows only the first warning whose message matches
    the regex `message`.

    Parameters
    ----------
    action : str
        One of `"error"`, `"ignore"`, `"always"`, `"default"`, `"module"`,
        `"once"`, or `"onceperfamily"`

    message : str, optional
        Regex matched against the start of warning messages (Default: `""`, match all)

    category : Warning or subclass, optional
        Type of warning. (Default: :class:`Warning`)

    module : str, optional
        Regex matched against module names (Default: `""`, match all)

    lineno : int, optional
        Line number to match. If 0 (default), match all lines

    append : bool, optional
        If `True`, add filter at end of filter list instead of the beginning
    """
    if action == "onceperfamily":
        tup = (action,re.compile(message,re.I),category,re.compile(module),lineno)
        if tup in rq_filters:
            return
        if append:
            rq_filters.append(tup)
        else:
            rq_filters.insert(0,tup)
    else:
        warnings.filterwarnings(action,message=message,category=category,
                                module=module,lineno=lineno,append=append)


def warn(message,category=None,stacklevel=1):
    """Issue a warning, respecting `onceperfamily` filters

    Parameters
    ----------
    message : str
        Message

    category : :class:`Warning`, or subclass, optional
        Type of warning (Default: :class:`UserWarning`)

    stacklevel : int, optional
        Frame from which the warning appears to originate (Default: 1, the caller)
    """
    if category is None:
        category = UserWarning

    frame_info = inspect.stack()[stacklevel]
    filename, lineno = frame_info[1], frame_info[2]
    del frame_info

    for _, pat, filter_category, _, filter_line in rq_filters:
        if pat.match(message) and issubclass(category,filter_category) and \
           (filter_line == 0 or filter_line == lineno):
            key = (pat.pattern,filter_category,filter_line)
            if key in rq_once_registry:
                return
            rq_once_registry[key] = 1
            break

    warnings.warn_explicit(message,category,filename,lineno,module=filename)


def warn_onceperfamily(message,pattern=None,category=None,stacklevel=1):
    """Issue a warning, creating a `onceperfamily` filter for it first if
    one does not already exist

    Parameters
    ----------
    message : str
        Message of warning

    pattern : str or None, optional
        Regex for the warning family. If `None`, `message` is used

    category : :class:`Warning`, or subclass, optional
        Type of warning

    stacklevel : int, optional
        Frame from which the warning appears to originate
    """
    if pattern is None:
        pattern = re.escape(message)
    filterwarnings("onceperfamily",message=pattern,category=category or UserWarning)
    warn(message,category=category,stacklevel=stacklevel+1)


def formatwarning(message,category,filename,lineno,file=None,line=None):
    """Colorize and reflow warnings for readability. Replaces
    :func:`warnings.formatwarning`

    Parameters
    ----------
    message : str
        Warning message

    category : Warning
        Class (not instance) of warning

    filename : str
        Name of file calling warning

    lineno : int
        Line in file calling warning

    file : file-like, optional
        Ignored

    line : str, optional
        Text of line calling warning. If `None`, the surrounding lines are
        fetched from `filename`

    Returns
    -------
    str
        Pretty-printed warning message
    """
    sep     = colored("-"*75,color="cyan")
    message = str(message)
    if "\n" not in message:
        message = _wrapper.fill(message)

    message = colored(message,color="white",attrs=["bold"])
    name    = colored(category.__name__,color="cyan",attrs=["bold"])

    if line is None:
        fmtstr = "{0: >%ss} {1}" % len(str(lineno+3))
        lines  = []
        for x in range(max(0,lineno-2),lineno+3):
            tmpline = linecache.getline(filename,x).strip("\n")
            if tmpline:
                attrs = ["bold"] if x == lineno else []
                lines.append(fmtstr.format(colored(x,color="green",attrs=attrs),
                                           colored(tmpline,attrs=attrs)))
        line = "\n".join(lines)

    location = "in %s, line %s:" % (colored(filename,color="cyan"),lineno)

    return "\n".join([sep,name,message,location,"",line,"",sep,""])


warnings.formatwarning = formatwarning
