"""
arxiv-digest — incremental summaries of newly listed arXiv papers.

Scrapes an arXiv category's "recent" listing, downloads each new paper's PDF,
summarizes it with an OpenAI-compatible LLM and stores the result as markdown,
skipping every paper that already has a summary on disk.
"""

__version__ = "0.1.0"
