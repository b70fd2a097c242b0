"""
SnipStash Backend — Rule-Based Auto Tagger
============================================

What:  Detects common programming concepts in snippet text and proposes tags
       for them ("loop", "async", "SQL", ...).
How:   A fixed table of case-insensitive regular expressions, each checked
       against the content and the description. No model, no I/O.
Who:   SnippetService, when a snippet is created or its tag set is replaced,
       and only while settings.auto_tagging_enabled is on.

Merging with manual tags:
    Manual tags are kept exactly as typed. A detected tag is added only if no
    manual tag matches it case-insensitively, so a user who typed "sql" does
    not also get "SQL".
"""

import re
from typing import Dict, List, Optional, Pattern, Sequence


TAG_RULES: Dict[str, Pattern[str]] = {
    "loop": re.compile(r"\b(for|while|forEach|do\s+while)\b", re.IGNORECASE),
    "API": re.compile(r"\b(fetch|axios|XMLHttpRequest|http\.get|ajax|requests\.(get|post))\b|\.post\(|\bapi\.", re.IGNORECASE),
    "error handling": re.compile(r"\b(try|catch|except|throw|raise|finally)\b|\bError\(", re.IGNORECASE),
    "debugging": re.compile(r"\b(console\.(log|debug|error|warn)|debugger|pdb|breakpoint\(\))", re.IGNORECASE),
    "async": re.compile(r"\b(async|await|Promise|then|asyncio)\b", re.IGNORECASE),
    "DOM": re.compile(r"\b(document\.|window\.|querySelector|getElementById|addEventListener)", re.IGNORECASE),
    "condition": re.compile(r"\b(if|else|elif|switch|case|ternary|conditional)\b", re.IGNORECASE),
    "function": re.compile(r"\b(function|def|lambda|class\s+\w+)\b|=>", re.IGNORECASE),
    "timing": re.compile(r"\b(setTimeout|setInterval|clearTimeout|clearInterval|sleep)\b", re.IGNORECASE),
    "OOP": re.compile(r"\b(class|constructor|extends|super|self\.|this\.)", re.IGNORECASE),
    "module": re.compile(r"\b(import|export|require|from)\b", re.IGNORECASE),
    "SQL": re.compile(r"\b(SELECT|INSERT|UPDATE|DELETE|JOIN|WHERE|sql|sequelize|sqlalchemy)\b", re.IGNORECASE),
    "auth": re.compile(r"\b(token|JWT|authenticate|authorization|passport|bcrypt|oauth)\b", re.IGNORECASE),
}


def detect_tags(content: Optional[str], description: Optional[str] = None) -> List[str]:
    """
    Return the rule names whose pattern matches the content or description,
    in TAG_RULES order.

    >>> detect_tags("for x in items:\\n    print(x)")
    ['loop']
    """
    texts = [text for text in (content, description) if text]
    if not texts:
        return []
    return [
        tag for tag, pattern in TAG_RULES.items()
        if any(pattern.search(text) for text in texts)
    ]


def merge_tags(manual: Sequence[str], detected: Sequence[str]) -> List[str]:
    """Manual tags first, then detected tags not already present case-insensitively."""
    merged = list(manual)
    seen = {name.lower() for name in manual}
    for tag in detected:
        if tag.lower() not in seen:
            seen.add(tag.lower())
            merged.append(tag)
    return merged


def auto_tag(
    content: Optional[str],
    manual_tags: Sequence[str],
    description: Optional[str] = None,
) -> List[str]:
    """Manual tags combined with the tags detected in content/description."""
    return merge_tags(manual_tags, detect_tags(content, description))
