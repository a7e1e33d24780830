"""Theme-safe cleanup of feed-supplied HTML fragments"""

import logging
from typing import List

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Declarations that fight the host theme's foreground/background
COLOR_PROPERTIES = {"color", "background-color"}

THEME_CLASS = "themed"
LINK_CLASS = "themed-link"
IMAGE_SIZING = ["max-width:100%", "height:auto"]
URL_ATTRIBUTES = {"href", "src", "action", "formaction", "xlink:href"}

# Block and text-bearing elements that get the theme class
TEXT_ELEMENTS = {
    "p", "div", "span", "section", "article", "aside", "header", "footer",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "li", "dl", "dt", "dd",
    "blockquote", "pre", "code", "figcaption",
    "table", "thead", "tbody", "tfoot", "tr", "td", "th", "caption",
    "a", "strong", "b", "em", "i", "u", "small", "mark", "sub", "sup", "font", "label",
}


def split_declarations(style: str) -> List[str]:
    return [decl.strip() for decl in style.split(";") if decl.strip()]


def property_name(declaration: str) -> str:
    return declaration.partition(":")[0].strip().lower()


def inert_markup(fragment: str) -> str:
    """Render-time guard: script elements become escaped text, handlers and
    ``javascript:`` urls are dropped, so the markup can be inserted live"""
    if not fragment:
        return ""
    soup = BeautifulSoup(fragment, "html.parser")
    for script in soup.find_all("script"):
        script.replace_with(str(script))
    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            if attr.lower().startswith("on"):
                del tag[attr]
            elif attr.lower() in URL_ATTRIBUTES and _is_script_url(tag[attr]):
                del tag[attr]
    return str(soup)


def _is_script_url(value) -> bool:
    return "".join(str(value).split()).lower().startswith("javascript:")


class ContentSanitizer:
    """Strips conflicting colors from untrusted HTML and tags it for theming

    Parsing is structural only (``html.parser``); script content is kept as
    inert text and never evaluated. Only ``style`` and ``class`` attributes
    are touched.
    """

    def __init__(self, theme_class: str = THEME_CLASS):
        self.theme_class = theme_class

    def sanitize(self, fragment: str) -> str:
        if not fragment:
            return ""
        soup = BeautifulSoup(fragment, "html.parser")
        for tag in soup.find_all(True):
            self._strip_colors(tag)
            if tag.name in TEXT_ELEMENTS:
                self._add_class(tag, self.theme_class)
        return str(soup)

    def normalize_media(self, fragment: str) -> str:
        """Post-render pass: fit images to the pane and recolor links"""
        if not fragment:
            return ""
        soup = BeautifulSoup(fragment, "html.parser")
        for img in soup.find_all("img"):
            declarations = split_declarations(img.get("style", ""))
            present = {property_name(decl) for decl in declarations}
            declarations += [rule for rule in IMAGE_SIZING if property_name(rule) not in present]
            img["style"] = ";".join(declarations)
        for link in soup.find_all("a"):
            self._add_class(link, LINK_CLASS)
        return str(soup)

    @staticmethod
    def _strip_colors(tag):
        style = tag.get("style")
        if style is None:
            return
        kept = [decl for decl in split_declarations(style) if property_name(decl) not in COLOR_PROPERTIES]
        if kept:
            tag["style"] = ";".join(kept)
        else:
            del tag["style"]

    @staticmethod
    def _add_class(tag, name: str):
        classes = tag.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        if name not in classes:
            tag["class"] = list(classes) + [name]
