"""
Signet usage synthesis.

synthesize(candidates, program=..., policy=...) renders the usage text shown when a
dispatch fails: one usage line per visible candidate, in declaration order.

Fragments
- positional: <name>, optional [<name>], variadic [<name> ...] (required variadic
  <name> [<name> ...]), choices <a|b>
- named: --name=<Int> (type label), flags bare (--verbose), short aliases first
  (-v|--verbose), optional ones bracketed
- catch-all: [--<name>=...]

Lines longer than policy.width wrap with a hanging indent under the first fragment.
Descriptions follow each usage line (DescriptionLayout.CANDIDATE) or come once, after
every usage line (DescriptionLayout.GLOBAL). The result is a plain string; printing is
the runner's business.
"""
import enum
import textwrap

from .parameters import ParamKind
from .policy import DescriptionLayout, Policy
from .signatures import CandidateSet
from .utils import *
from .values import label


_INDENT = "    "


def _show(choice):
    return choice.name if isinstance(choice, enum.Enum) else str(choice)


def _metavar(spec):
    if spec.choices:
        inner = "|".join(map(_show, spec.choices))
    elif isinstance(spec.type, enum.EnumType):
        inner = "|".join(member.name for member in spec.type)
    elif spec.kind is ParamKind.POSITIONAL:
        inner = spec.name
    else:
        inner = label(spec.type)
    return "<%s>" % inner


def _term(spec):
    if spec.kind is ParamKind.POSITIONAL:
        return _metavar(spec)
    if spec.catchall:
        return "--<%s>=..." % spec.name
    names = "|".join([*("-" + alias for alias in spec.aliases if len(alias) == 1), "--" + spec.name])
    return names if spec.boolean else "%s=%s" % (names, _metavar(spec))


def _fragment(spec):
    term = _term(spec)
    if spec.variadic:
        return "%s [%s ...]" % (term, term) if spec.required else "[%s ...]" % term
    if spec.catchall or spec.optional:
        return "[%s]" % term
    return term


def _usage(signature, program, width):
    head = "usage: %s" % program
    offset = len(head) + 1
    rows = [head]
    fresh = True

    for fragment in map(_fragment, signature.params):
        if not fresh and len(rows[-1]) + 1 + len(fragment) > width:
            rows.append(" " * offset + fragment)
        else:
            rows[-1] += " " + fragment
        fresh = False
    return rows


def _entries(signature):
    return [(_term(spec), str(spec.descr)) for spec in signature.params if spec.descr]


def _table(entries, width):
    if not entries:
        return []
    column = max(len(term) for term, _ in entries)
    rows = []
    for term, descr in entries:
        rows.extend(textwrap.wrap(
            descr,
            width,
            initial_indent=f"{_INDENT}{term:<{column}}  ",
            subsequent_indent=" " * (len(_INDENT) + column + 2),
        ))
    return rows


def synthesize(candidates, /, *, program, policy=Unset):
    """
    Render usage text for the visible candidates.

    Parameters
    - candidates: CandidateSet, or an iterable of Signatures/callables.
    - program: program name shown after "usage:".
    - policy: Policy; width and descriptions apply.

    Returns
    - str without a trailing newline; "usage: <program>" when every candidate is hidden
      or there are none.
    """
    policy = coalesce(policy, Policy())
    if not isinstance(policy, Policy):
        raise TypeError("synthesize() 'policy' must be a policy")
    if not isinstance(program, str) or not program.strip():
        raise ValueError("synthesize() 'program' must be a non-empty string")
    if not isinstance(candidates, CandidateSet):
        candidates = CandidateSet(candidates)

    if not (visible := candidates.visible):
        return "usage: %s" % program

    lines = []
    match policy.descriptions:
        case DescriptionLayout.CANDIDATE:
            for signature in visible:
                lines.extend(_usage(signature, program, policy.width))
                if signature.descr:
                    lines.extend(textwrap.wrap(
                        str(signature.descr),
                        policy.width,
                        initial_indent=_INDENT,
                        subsequent_indent=_INDENT,
                    ))
                lines.extend(_table(_entries(signature), policy.width))
        case DescriptionLayout.GLOBAL:
            entries = []
            for signature in visible:
                lines.extend(_usage(signature, program, policy.width))
                entries.extend(entry for entry in _entries(signature) if entry not in entries)
            if entries:
                lines.append("")
                lines.extend(_table(entries, policy.width))

    return "\n".join(lines)


__all__ = (
    "synthesize",
)
