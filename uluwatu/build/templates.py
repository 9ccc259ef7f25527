"""Jinja2 environment and the built-in page templates.

Sites can override any template by dropping a file with the same name into
their templates directory (``templates/`` by default).
"""

from __future__ import annotations

from email.utils import format_datetime
from pathlib import Path
from urllib.parse import urljoin

from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    select_autoescape,
)

from ..content import tag_url_path

BASE = """<!DOCTYPE html>
<html lang="{{ site.language }}">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{% block title %}{{ site.title }}{% endblock %}</title>
  <link rel="alternate" type="application/rss+xml" href="{{ '/index.xml' | absurl }}" title="{{ site.title }}">
  {%- block head %}{% endblock %}
</head>
<body>
  <header><a href="{{ '/' | absurl }}">{{ site.title }}</a> <a href="{{ '/tags/' | absurl }}">tags</a></header>
  <main>
  {%- block main %}{% endblock %}
  </main>
</body>
</html>
"""

SINGLE = """{% extends "base.html" %}
{% block title %}{{ post.title }} | {{ site.title }}{% endblock %}
{% block head %}
{%- if post.front_matter.math %}
  <link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/katex@0.16.9/dist/katex.min.css">
  <script defer src="https://cdn.jsdelivr.net/npm/katex@0.16.9/dist/katex.min.js"></script>
  <script defer src="https://cdn.jsdelivr.net/npm/katex@0.16.9/dist/contrib/auto-render.min.js"
    onload="renderMathInElement(document.body, {delimiters: [
      {left: '$$', right: '$$', display: true},
      {left: '\\\\[', right: '\\\\]', display: true},
      {left: '\\\\(', right: '\\\\)', display: false},
      {left: '$', right: '$', display: false}]});"></script>
{%- endif %}
{% endblock %}
{% block main %}
  <article>
    <h1>{{ post.title }}</h1>
    {%- if post.date %}
    <time datetime="{{ post.date.isoformat() }}">{{ post.date.strftime('%Y-%m-%d') }}</time>
    {%- endif %}
    {%- if post.tags %}
    <ul class="tags">
      {%- for tag in post.tags %}
      <li><a href="{{ tag | tagurl | absurl }}">{{ tag }}</a></li>
      {%- endfor %}
    </ul>
    {%- endif %}
    {%- if toc %}
    <nav class="toc">{{ toc | safe }}</nav>
    {%- endif %}
    {{ content | safe }}
  </article>
{% endblock %}
"""

LIST = """{% extends "base.html" %}
{% block title %}{% if heading %}{{ heading }} | {% endif %}{{ site.title }}{% endblock %}
{% block main %}
  {%- if heading %}
  <h1>{{ heading }}</h1>
  {%- endif %}
  <ul class="posts">
    {%- for post in posts %}
    <li>
      {%- if post.date %}<time datetime="{{ post.date.isoformat() }}">{{ post.date.strftime('%Y-%m-%d') }}</time> {% endif -%}
      <a href="{{ post.url_path | absurl }}">{{ post.title }}</a>
    </li>
    {%- endfor %}
  </ul>
{% endblock %}
"""

TERMS = """{% extends "base.html" %}
{% block title %}tags | {{ site.title }}{% endblock %}
{% block main %}
  <h1>tags</h1>
  <ul class="tags">
    {%- for tag, tagged in tags.items() %}
    <li><a href="{{ tag | tagurl | absurl }}">{{ tag }}</a> ({{ tagged | length }})</li>
    {%- endfor %}
  </ul>
{% endblock %}
"""

RSS = """<?xml version="1.0" encoding="utf-8" standalone="yes"?>
<rss version="2.0">
  <channel>
    <title>{{ site.title }}</title>
    <link>{{ '/' | absurl }}</link>
    <description>Recent posts on {{ site.title }}</description>
    <language>{{ site.language }}</language>
    {%- if last_build %}
    <lastBuildDate>{{ last_build | rfc822 }}</lastBuildDate>
    {%- endif %}
    {%- for post in posts %}
    <item>
      <title>{{ post.title }}</title>
      <link>{{ post.url_path | absurl }}</link>
      <guid>{{ post.url_path | absurl }}</guid>
      {%- if post.date %}
      <pubDate>{{ post.date | rfc822 }}</pubDate>
      {%- endif %}
      <description>{{ post.front_matter.description or '' }}</description>
    </item>
    {%- endfor %}
  </channel>
</rss>
"""

DEFAULT_TEMPLATES = {
    "base.html": BASE,
    "single.html": SINGLE,
    "list.html": LIST,
    "terms.html": TERMS,
    "index.xml": RSS,
}


def create_environment(base_url: str, templates_dir: Path | None = None) -> Environment:
    """Create the Jinja2 environment used to render pages.

    Args:
        base_url: Absolute site URL, used by the ``absurl`` filter
        templates_dir: Optional directory whose templates take precedence

    Returns:
        Configured Environment
    """
    loaders = []
    if templates_dir is not None and Path(templates_dir).is_dir():
        loaders.append(FileSystemLoader(str(templates_dir)))
    loaders.append(DictLoader(DEFAULT_TEMPLATES))

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=select_autoescape(["html", "xml"]),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["absurl"] = lambda path: urljoin(base_url, str(path).lstrip("/"))
    env.filters["tagurl"] = tag_url_path
    env.filters["rfc822"] = format_datetime
    return env
