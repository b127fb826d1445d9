"""
Rule Knowledge Base

Human-readable documentation for the rules this package implements:
title, metadata, rationale, non-compliant / compliant examples and fix
strategy.  The decision logic lives in the rule modules themselves.
"""

from typing import Dict, Optional
from dataclasses import dataclass


@dataclass
class RuleDoc:
    rule_id: str
    title: str
    type: str                              # "problem" | "suggestion" | "layout"
    category: str
    rationale: str
    non_compliant: str                     # code example
    compliant: str                         # fixed code example
    fix_strategy: str
    recommended: bool = True
    fixable: Optional[str] = None          # "code" | "whitespace" | None
    url: str = ""


_RULES: Dict[str, RuleDoc] = {}

def _add(rule: RuleDoc):
    _RULES[rule.rule_id] = rule


_add(RuleDoc(
    rule_id="delegate-effects",
    title="Enforce yield* (delegate) on effects",
    type="problem",
    category="Possible Errors",
    rationale=(
        "typed-redux-saga wraps every redux-saga effect in a generator so "
        "that `yield*` can infer the effect's result type.  A plain `yield` "
        "passes the wrapper straight to the saga middleware: the result is "
        "typed as `any` and, without the babel macro, the effect is never "
        "run as intended."
    ),
    non_compliant="""\
import { call, put } from 'typed-redux-saga';

function* fetchUser(id) {
    const user = yield call(api.fetchUser, id);
    yield (user ? put(loaded(user)) : put(failed()));
}""",
    compliant="""\
import { call, put } from 'typed-redux-saga';

function* fetchUser(id) {
    const user = yield* call(api.fetchUser, id);
    yield* (user ? put(loaded(user)) : put(failed()));
}""",
    fix_strategy=(
        "Replace `yield` with `yield*` in front of every effect imported "
        "from `typed-redux-saga` or `typed-redux-saga/macro`, including "
        "effects reached through a default import (`E.call(...)`) or a "
        "renamed import (`{ call as c }`).  The auto-fix rewrites only the "
        "`yield` keyword and leaves the rest of the expression untouched."
    ),
    fixable="code",
    url="https://github.com/jambit/eslint-plugin-typed-redux-saga/",
))


def get_rule(rule_id: str) -> Optional[RuleDoc]:
    """Look up a rule by id; a ``typed-redux-saga/`` plugin prefix is accepted."""
    return _RULES.get(rule_id.split("/", 1)[-1])


def get_all_rules() -> Dict[str, RuleDoc]:
    return dict(_RULES)


def format_rule_explanation(rule_id: str) -> str:
    """Return a rich, human-readable explanation of a rule."""
    rule = get_rule(rule_id)
    if rule is None:
        return f"Unknown rule: {rule_id}"

    fixable = f"yes ({rule.fixable})" if rule.fixable else "no"
    explanation = f"""## {rule.rule_id} — {rule.title}
**Type**: {rule.type} | **Category**: {rule.category} | **Recommended**: {"yes" if rule.recommended else "no"} | **Auto-fix**: {fixable}

### Rationale
{rule.rationale}

### Non-Compliant Example
```js
{rule.non_compliant}
```

### Compliant Example
```js
{rule.compliant}
```

### How to Fix
{rule.fix_strategy}"""

    if rule.url:
        explanation += f"\n\n**Docs**: {rule.url}"
    return explanation
