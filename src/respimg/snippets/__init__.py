from __future__ import annotations

from respimg.snippets.templating import (
    SnippetImage,
    build_snippet_images,
    render_picture_elements,
    write_snippet,
)

__all__ = ["SnippetImage", "build_snippet_images", "render_picture_elements", "write_snippet"]
