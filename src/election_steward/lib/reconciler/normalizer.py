"""Name and office normalization for reconciliation.

Different sources spell the same person and the same contest differently
("Sen. José Núñez Jr." vs "Jose Nunez", "U.S. House District 05" vs
"House of Representatives, District 5"). Normalization folds these into
comparable keys; similarity scoring lives in the matcher.
"""

import re
import unicodedata

HONORIFICS = frozenset(
    {
        "mr",
        "mrs",
        "ms",
        "miss",
        "mx",
        "dr",
        "hon",
        "honorable",
        "rep",
        "representative",
        "sen",
        "senator",
        "gov",
        "governor",
        "judge",
        "justice",
        "rev",
        "reverend",
        "prof",
        "mayor",
        "commissioner",
        "councilmember",
        "lt",
        "col",
        "gen",
        "capt",
        "sgt",
    }
)

SUFFIXES = frozenset({"jr", "sr", "ii", "iii", "iv", "esq", "phd", "md", "cpa", "ret"})

_OFFICE_SYNONYMS: dict[str, str] = {
    "sen": "senate",
    "senator": "senate",
    "rep": "house",
    "reps": "house",
    "representative": "house",
    "representatives": "house",
    "congressional": "house",
    "congress": "house",
    "dist": "district",
    "cd": "district",
    "gov": "governor",
    "gubernatorial": "governor",
    "atty": "attorney",
    "ag": "attorney general",
    "lt": "lieutenant",
    "sos": "secretary state",
}

_OFFICE_STOPWORDS = frozenset({"of", "the", "for", "seat", "us", "u", "s", "united", "states", "federal", "member", "to"})

_PARENTHETICAL_RE = re.compile(r"\([^)]*\)")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_APOSTROPHE_RE = re.compile(r"['’`]")


def fold_text(value: str) -> str:
    """Strip accents, casefold, and collapse whitespace."""
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.casefold().split())


def _clean_tokens(value: str) -> list[str]:
    value = _PARENTHETICAL_RE.sub(" ", value)
    value = _APOSTROPHE_RE.sub("", value)
    value = _NON_WORD_RE.sub(" ", value)
    return value.replace("_", " ").split()


def normalize_name(name: str) -> str:
    """Normalize a person's name into a comparison key.

    Case-folds, strips accents and punctuation, removes parenthesized
    annotations (e.g., party labels), leading honorifics and trailing
    suffixes, and reorders "Last, First" into "first last".

    Args:
        name: Raw name as provided by a source.

    Returns:
        Space-separated lowercase tokens; empty string when nothing remains.
    """
    folded = fold_text(name)
    folded = _PARENTHETICAL_RE.sub(" ", folded)

    parts = [p.strip() for p in folded.split(",") if p.strip()]
    if len(parts) >= 2:
        trailing = [p for p in parts[1:] if not set(_clean_tokens(p)) <= SUFFIXES]
        if len(trailing) == 1:
            # "Smith, John" -> "John Smith"
            folded = f"{trailing[0]} {parts[0]}"
        else:
            folded = " ".join([parts[0], *trailing])

    tokens = _clean_tokens(folded)
    while tokens and tokens[0] in HONORIFICS:
        tokens.pop(0)
    while tokens and tokens[-1] in SUFFIXES:
        tokens.pop()
    return " ".join(tokens)


def normalize_office(office: str) -> frozenset[str]:
    """Normalize an office or contest title into a token set.

    Synonyms collapse to a canonical token ("Rep." and "House of
    Representatives" both become ``house``), district numbers lose leading
    zeros, and filler words are dropped.

    Args:
        office: Raw office or contest title.

    Returns:
        Set of canonical tokens.
    """
    tokens: set[str] = set()
    for token in _clean_tokens(fold_text(office)):
        if token.isdigit():
            tokens.add(str(int(token)))
            continue
        mapped = _OFFICE_SYNONYMS.get(token, token)
        for part in mapped.split():
            if part not in _OFFICE_STOPWORDS:
                tokens.add(part)
    return frozenset(tokens)


def offices_match(source_office: frozenset[str], election_offices: list[frozenset[str]]) -> bool:
    """Whether a source office is compatible with any of an election's offices.

    Two offices match when one token set contains the other. An empty
    source office matches anything.
    """
    if not source_office:
        return True
    for office in election_offices:
        if not office:
            continue
        if source_office <= office or office <= source_office:
            return True
    return False
