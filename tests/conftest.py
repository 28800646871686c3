"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest

from snipcheck.config import reset_config
from snipcheck.evaluation.evaluator import Evaluator
from snipcheck.extraction.annotation_parser import parse_annotation
from snipcheck.models import Snippet
from snipcheck.utils.logging_config import get_logger

SAMPLE_MARKDOWN = """\
# ES6 cheatsheet

Some intro text.

## Destructuring

```js
const [a, b = 3] = [1] // => a = 1, b = 3
```

```js
const { name, ...rest } = { name: 'Ada', age: 36, lang: 'en' };
rest // => { age: 36, lang: 'en' }
```

## Arrow functions

```javascript
const double = n => n * 2;
[1, 2, 3].map(double) // => [2, 4, 6]
```

```js
// Illustrative only, no annotation
const square = x => x * x;
```

```python
print("not javascript")  # => 1
```

## Constants

```js
const user = { name: 'John Doe', age: 42 };
user = {} // => {}
```
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config(monkeypatch):
    """Fresh configuration without environment overrides."""
    monkeypatch.delenv("SNIPCHECK_TIMEOUT", raising=False)
    reset_config()

    from snipcheck.config import get_config

    yield get_config()

    reset_config()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to streams that CLI tests close."""
    yield
    logger = get_logger()
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


@pytest.fixture
def sample_markdown():
    """Markdown document with annotated and illustrative snippets."""
    return SAMPLE_MARKDOWN


@pytest.fixture
def sample_md_file(temp_dir, sample_markdown):
    """Sample markdown written to disk."""
    path = temp_dir / "cheatsheet.md"
    path.write_text(sample_markdown, encoding="utf-8")
    return path


@pytest.fixture
def evaluator():
    """Evaluator with a short timeout."""
    with Evaluator(timeout=1.0) as evaluator:
        yield evaluator


@pytest.fixture
def make_snippet():
    """Build a snippet from code and an annotation comment."""

    def _make(code: str, comment: str, start_line: int = 1) -> Snippet:
        return Snippet(
            id=f"test.md:{start_line}",
            source="test.md",
            code=code,
            annotation=parse_annotation(comment),
            language="js",
            start_line=start_line,
            end_line=start_line + code.count("\n") + 2,
            annotation_line=start_line + code.count("\n") + 1,
        )

    return _make
