#!/usr/bin/env python
"""Turn the module docstrings of :mod:`riboqc.bin` scripts into command-line
help text, by stripping `reStructuredText`_ roles, substitutions and links,
and cutting the text at the first `numpydoc`_ section heading.
"""
import re

pyrst_pattern = re.compile(r"(?P<spacing>^|\s+)(?::(?P<domain>[^:`<>]+))?:(?P<role>[^:`]*):`(?P<argument>[^`<>]+)(?: +<(?P<pointer>[^`]+)>)?`")
"""Matches roles like ``:domain:role:`argument``` or ``:role:`argument <pointer>```"""

subst_pattern = re.compile(r"\|([^|]*)\|")
"""Matches substitutions like ``|substitution|``"""

link_pattern = re.compile(r"`([^`<>]+)( <[^`]+>)?`_")
"""Matches link references like ```Linkname`_`` and ```Link text <url>`_``"""

_SECTION_TOKENS = ("Parameters","Returns","Yields","Raises","Attributes")

_separator = "\n" + (78*"-") + "\n"


def shorten_help(inp):
    """Strip markup from a docstring and truncate it before its first
    `numpydoc`_ section

    Parameters
    ----------
    inp : str
        Docstring to format

    Returns
    -------
    str
        Cleaned help text
    """
    inp = pyrst_pattern.sub(r"\g<spacing>\g<argument>",inp)
    inp = subst_pattern.sub(r"\g<1>",inp)
    inp = link_pattern.sub(r"\g<1>",inp)

    cut = len(inp)
    for token in _SECTION_TOKENS:
        for candidate in (token,"    %s" % token.lower()):
            idx = inp.find(candidate)
            if idx != -1:
                cut = min(cut,idx)

    return inp[:cut].strip() + "\n"


def format_module_docstring(inp):
    """Format a module docstring for use as the `description` of an
    :class:`argparse.ArgumentParser`, surrounded by separators

    Parameters
    ----------
    inp : str
        Module docstring

    Returns
    -------
    str
    """
    return _separator + "\n" + shorten_help(inp) + "\n" + _separator
