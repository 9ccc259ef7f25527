"""Pytest fixtures for uluwatu tests."""

import pytest
from pathlib import Path

from uluwatu.config import Settings

CONFIG = """\
baseURL = "https://www.uluwatu.xyz/"
title = "uluwatu"
languageCode = "en-us"

[uluwatu]
generator = "native"
"""

ORDER_BOOK = """\
---
title: "Order book in Rust"
date: 2021-05-02T10:00:00+00:00
draft: false
toc: true
images: []
math: false
tags: ["rust", "performance"]
---

## Benchmark

![latency](/images/latency.png)

```rust
let total: u64 = levels.iter().map(|l| l.qty).sum(); // $ not math
```
"""

HURDLE_RATE = """\
+++
title = "Correlation and hurdle rates"
date = 2021-08-14
draft = false
math = true
tags = ["statistics"]
+++

The hurdle rate is $r_h = r_f + \\beta (r_m - r_f)$.

$$
\\rho = \\frac{\\operatorname{cov}(X, Y)}{\\sigma_X \\sigma_Y}
$$
"""

HEAP_SNAPSHOT = """\
---
title: "Heap deltas in Python"
date: 2022-01-20
tags: ["python"]
---

Snapshot sizes before and after a request.

![chart](chart.png)
"""

UNFINISHED = """\
---
title: "Async barrier"
date: 2022-03-01
draft: true
tags: ["python", "async"]
---

Not ready yet.
"""

ABOUT = """\
---
title: "About"
---

Notes on systems and statistics.
"""


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host CI and ULUWATU_* variables from leaking into tests."""
    import os

    for key in list(os.environ):
        if key.startswith(("ULUWATU_", "GITHUB_")):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def site_dir(tmp_path):
    """A small site tree: config, four posts (one draft), an about page, images."""
    site = tmp_path / "site"
    write(site / "config.toml", CONFIG)
    write(site / "content" / "posts" / "order-book.md", ORDER_BOOK)
    write(site / "content" / "posts" / "hurdle-rate.md", HURDLE_RATE)
    write(site / "content" / "posts" / "heap-snapshot" / "index.md", HEAP_SNAPSHOT)
    write(site / "content" / "posts" / "async-barrier.md", UNFINISHED)
    write(site / "content" / "posts" / "_index.md", "---\ntitle: Posts\n---\n")
    write(site / "content" / "about.md", ABOUT)
    (site / "content" / "posts" / "heap-snapshot" / "chart.png").write_bytes(b"\x89PNG chart")
    (site / "static" / "images").mkdir(parents=True)
    (site / "static" / "images" / "latency.png").write_bytes(b"\x89PNG latency")
    return site


@pytest.fixture
def settings(site_dir):
    """Settings for the temporary site."""
    return Settings(site_dir)
