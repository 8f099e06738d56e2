"""System prompt for the plan generator.

Built per request from a :class:`DiscoverySnapshot` so the LLM sees the
site's current settings, patterns and content.
"""

from __future__ import annotations

from models.site import DiscoverySnapshot
from services.snapshot import field_text

# Long page bodies are cut so one page cannot crowd the prompt.
MAX_CONTENT_CHARS = 4000

_INTRO = """\
You are an expert WordPress orchestrator. Translate the user's request into a
sequence of structured JSON commands executed via the WordPress REST API.

Prefer block patterns (insert_pattern) for layout changes.
All content changes are applied as drafts and published later by the user.

Response format — return ONE JSON object:
{
  "explanation": "A short summary of what you are planning to do.",
  "commands": [{"type": "...", ...}]
}

Commands:
1. patch_post_content { post_id: number, search: string, replace: string }
   USE THIS FOR REPLACING TEXT IN EXISTING PAGES. It is safer and more efficient.
2. update_post { post_id: number, title?: string, content?: string }
   Only for changing titles or writing completely new content.
3. update_settings { title?: string, description?: string, timezone?: string }
   Site identity (title and tagline).
4. insert_pattern { pattern_slug: string, target_post_id: number }
   target_post_id 0 means "the page created by the previous command".
5. create_page { title: string, blocks: any[] }
6. update_global_styles { styles: object, settings?: object }
   ONLY when global styles are supported.
7. upload_media { url: string, alt_text?: string, caption?: string }
"""

_RULES = """\
Rules:
- To edit existing text, you MUST use patch_post_content.
- Take post_id from the "Existing content" list.
- The search string must be copied exactly from the content.
- Check the front page ID before editing the homepage.
- Use update_settings for the site title or tagline.
- If global styles are not supported, do NOT use update_global_styles; explain
  in "explanation" that styles cannot be changed on this theme.
- Always return a valid JSON object.
"""


def _settings_section(snapshot: DiscoverySnapshot) -> str:
    s = snapshot.settings or {}
    front = s.get("page_on_front") or "Not set (using latest posts)"
    styles = "YES" if snapshot.has_global_styles else "NO (classic theme, do NOT use update_global_styles)"
    return (
        "Current site settings:\n"
        f'- Title: "{s.get("title") or "Unknown"}"\n'
        f'- Description: "{s.get("description") or "Unknown"}"\n'
        f"- Front page ID: {front}\n"
        f"- Global styles support: {styles}\n"
    )


def _patterns_section(snapshot: DiscoverySnapshot) -> str:
    if not snapshot.patterns:
        return "Available patterns:\nNone available.\n"
    lines = [
        f"- [{p.get('name') or p.get('slug')}] {p.get('title') or ''}".rstrip()
        for p in snapshot.patterns
    ]
    return "Available patterns:\n" + "\n".join(lines) + "\n"


def _content_section(snapshot: DiscoverySnapshot) -> str:
    if not snapshot.items:
        return "Existing content:\nNO EXISTING CONTENT FOUND.\n"
    front = (snapshot.settings or {}).get("page_on_front")
    entries = []
    for item in snapshot.items:
        marker = " [FRONT PAGE]" if front and item.get("id") == front else ""
        body = field_text(item.get("content"))[:MAX_CONTENT_CHARS] or "Empty"
        entries.append(
            f'- [ID: {item.get("id")}] "{field_text(item.get("title"))}" '
            f'({item.get("type", "post")}) status: {item.get("status")}{marker}\n'
            f"  Content: {body}"
        )
    return "Existing content:\n" + "\n\n".join(entries) + "\n"


def build_planner_prompt(snapshot: DiscoverySnapshot, default_front_page: int = 0) -> str:
    """Assemble the full planner system prompt."""
    front = (snapshot.settings or {}).get("page_on_front") or default_front_page or 1
    example = (
        "Example:\n"
        "User: \"Change 'Hello World' to 'Welcome Home' on the homepage\"\n"
        "Response:\n"
        '{"explanation": "Patching the homepage to replace the greeting.", '
        f'"commands": [{{"type": "patch_post_content", "post_id": {front}, '
        '"search": "Hello World", "replace": "Welcome Home"}]}\n'
    )
    return "\n".join([
        _INTRO,
        _settings_section(snapshot),
        _patterns_section(snapshot),
        _content_section(snapshot),
        example,
        _RULES,
    ])
