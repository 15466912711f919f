"""Rewrite articles' availableColors entries as "name:code" strings.

Runs through the mutation gateway, so articles.json is snapshotted before
it is rewritten.
"""

ARTICLES = "articles"

COLOR_MAP = {
    "noir": "#000000",
    "blanc": "#FFFFFF",
    "gris": "#808080",
    "gris foncé": "#555555",
    "gris anthracite": "#333333",
    "bleu": "#0000FF",
    "bleu marine": "#001F3F",
    "rouge": "#FF0000",
    "rouge bordeaux": "#800020",
    "rose": "#FFC0CB",
    "rose poudré": "#EEC9D2",
    "jaune": "#FFFF00",
    "marron": "#8B4513",
    "camel": "#C19A6B",
    "taupe": "#483C32",
    "beige": "#F5F5DC",
    "kaki": "#78866B",
    "vert": "#008000",
    "vert militaire": "#4B5320",
    "mauve": "#E0B0FF",
    "blanc cassé": "#F8F8F0",
}


def name_to_code(name):
    """Hex code for a known color name; unknown names map to themselves."""
    return COLOR_MAP.get(str(name).strip().lower(), name)


def to_name_code(entry):
    """Normalize one color entry, or None to drop it."""
    if not entry:
        return None
    if isinstance(entry, str):
        if ":" in entry:
            return entry
        name = entry.strip()
        return f"{name}:{name_to_code(name)}"
    if isinstance(entry, dict):
        name = str(entry.get("name") or entry.get("label") or "").strip()
        if not name:
            return None
        code = entry.get("code") or name_to_code(name)
        return f"{name}:{code}"
    return None


def convert_articles(articles):
    """Return (converted_articles, changed_count). Input is not modified."""
    changed = 0
    output = []
    for article in articles:
        if not isinstance(article, dict) or not isinstance(article.get("availableColors"), list):
            output.append(article)
            continue
        converted = [c for c in map(to_name_code, article["availableColors"]) if c]
        if converted != article["availableColors"]:
            changed += 1
        output.append({**article, "availableColors": converted})
    return output, changed


def convert_article_colors(gateway):
    """Convert articles.json in place. Returns the number of articles changed."""
    articles = gateway.read_json(ARTICLES)
    if not isinstance(articles, list):
        raise ValueError("articles.json root must be an array")
    converted, changed = convert_articles(articles)
    gateway.write(ARTICLES, converted)
    return changed
