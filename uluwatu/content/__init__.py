"""Blog content: front-matter, posts and the corpus."""

from .frontmatter import FrontMatter, parse_front_matter, split_front_matter
from .post import Post, load_post, slugify
from .corpus import Corpus, tag_url_path

__all__ = [
    "FrontMatter",
    "parse_front_matter",
    "split_front_matter",
    "Post",
    "load_post",
    "slugify",
    "Corpus",
    "tag_url_path",
]
