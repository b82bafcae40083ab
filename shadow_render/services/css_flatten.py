"""CSS transform pass: lowers nesting and custom media, optionally minifies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Union

import tinycss2
from tinycss2.serializer import serialize_identifier

from shadow_render.core.config import BrowserTargets
from shadow_render.core.errors import CssTransformError

# First major versions shipping native CSS nesting (Safari 16.5 rounded up).
NATIVE_NESTING = {"chrome": 112, "firefox": 117, "safari": 17}

GROUPING_AT_RULES = {"media", "supports", "container", "layer", "scope", "starting-style", "document"}

SELECTOR_SEPARATORS = {",", ">", "+", "~"}
VALUE_SEPARATORS = {","}
PRELUDE_SEPARATORS = {",", ":"}


@dataclass
class _StyleRule:
    selectors: List[str]
    declarations: List[str] = field(default_factory=list)
    children: List["_Node"] = field(default_factory=list)


@dataclass
class _AtRule:
    keyword: str
    prelude: str
    declarations: Optional[List[str]] = None
    children: Optional[List["_Node"]] = None

    @property
    def has_block(self) -> bool:
        return self.declarations is not None or self.children is not None


_Node = Union[_StyleRule, _AtRule]


def needs_nesting_lowered(targets: BrowserTargets) -> bool:
    """True when any target browser predates native CSS nesting."""

    return any(getattr(targets, browser) < version for browser, version in NATIVE_NESTING.items())


def _raise_parse_error(error) -> None:
    raise CssTransformError(error.message, line=error.source_line, column=error.source_column)


def _check_tokens(tokens: Optional[Iterable]) -> None:
    for token in tokens or ():
        if token.type == "error":
            _raise_parse_error(token)
        nested = getattr(token, "arguments", None)
        if nested is None:
            nested = getattr(token, "content", None)
        if isinstance(nested, list):
            _check_tokens(nested)


def _split_commas(tokens: Sequence) -> List[List]:
    groups: List[List] = [[]]
    for token in tokens:
        if token.type == "literal" and token.value == ",":
            groups.append([])
        else:
            groups[-1].append(token)
    return [_strip_whitespace(group) for group in groups]


def _strip_whitespace(tokens: List) -> List:
    start, end = 0, len(tokens)
    while start < end and tokens[start].type in ("whitespace", "comment"):
        start += 1
    while end > start and tokens[end - 1].type in ("whitespace", "comment"):
        end -= 1
    return tokens[start:end]


def _contains_nesting_selector(tokens: Iterable) -> bool:
    for token in tokens:
        if token.type == "literal" and token.value == "&":
            return True
        if token.type == "function" and _contains_nesting_selector(token.arguments):
            return True
    return False


class CssFlattener:
    """Single-use transformer for one stylesheet."""

    def __init__(self, minify: bool, lower_nesting: bool) -> None:
        self.minify = minify
        self.lower_nesting = lower_nesting
        self.custom_media: Dict[str, List] = {}

    def transform(self, css: str) -> str:
        rules = tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True)
        for rule in rules:
            if rule.type == "error":
                _raise_parse_error(rule)
            if rule.type == "at-rule" and rule.lower_at_keyword == "custom-media":
                self._register_custom_media(rule)

        nodes = self._rule_list(rules, None)
        if self.minify:
            return "".join(self._node_minified(node) for node in nodes)
        if not nodes:
            return ""
        return "\n\n".join(self._node_pretty(node, 0) for node in nodes) + "\n"

    # -- parsing -----------------------------------------------------------

    def _register_custom_media(self, rule) -> None:
        _check_tokens(rule.prelude)
        tokens = _strip_whitespace(list(rule.prelude))
        if not tokens or tokens[0].type != "ident" or not tokens[0].value.startswith("--"):
            raise CssTransformError(
                "@custom-media requires a --name", line=rule.source_line, column=rule.source_column
            )
        self.custom_media[tokens[0].value] = _strip_whitespace(tokens[1:])

    def _rule_list(self, items: Iterable, parents: Optional[List[str]], nested: bool = False) -> List[_Node]:
        nodes: List[_Node] = []
        for item in items:
            if item.type == "error":
                _raise_parse_error(item)
            elif item.type == "qualified-rule":
                nodes.extend(self._style_rule(item, parents))
            elif item.type == "at-rule":
                nodes.extend(self._at_rule(item, parents, nested))
        return nodes

    def _block_contents(self, content) -> tuple[List[str], List]:
        declarations: List[str] = []
        nested: List = []
        items = tinycss2.parse_blocks_contents(content, skip_whitespace=True, skip_comments=True)
        for item in items:
            if item.type == "error":
                _raise_parse_error(item)
            elif item.type == "declaration":
                declarations.append(self._declaration(item))
            else:
                nested.append(item)
        return declarations, nested

    def _style_rule(self, rule, parents: Optional[List[str]]) -> List[_Node]:
        _check_tokens(rule.prelude)
        selectors = self._selectors(rule.prelude, parents, rule)
        declarations, nested = self._block_contents(rule.content)

        if not self.lower_nesting:
            children = self._rule_list(nested, None, nested=True)
            if not declarations and not children:
                return []
            return [_StyleRule(selectors, declarations, children)]

        nodes: List[_Node] = []
        if declarations:
            nodes.append(_StyleRule(selectors, declarations))
        nodes.extend(self._rule_list(nested, selectors, nested=True))
        return nodes

    def _at_rule(self, rule, parents: Optional[List[str]], nested: bool = False) -> List[_Node]:
        keyword = rule.lower_at_keyword
        if keyword == "custom-media":
            return []

        _check_tokens(rule.prelude)
        prelude = self._join(rule.prelude, PRELUDE_SEPARATORS, expand_media=keyword == "media")
        if rule.content is None:
            return [_AtRule(keyword, prelude)]
        _check_tokens(rule.content)

        if keyword in GROUPING_AT_RULES:
            return self._grouping_rule(rule, keyword, prelude, parents, nested)

        if keyword.endswith("keyframes"):
            frames = tinycss2.parse_rule_list(rule.content, skip_comments=True, skip_whitespace=True)
            children: List[_Node] = []
            for frame in frames:
                if frame.type == "error":
                    _raise_parse_error(frame)
                if frame.type != "qualified-rule":
                    continue
                declarations, _ = self._block_contents(frame.content)
                children.append(_StyleRule(self._selectors(frame.prelude, None, frame), declarations))
            return [_AtRule(keyword, prelude, children=children)]

        declarations, nested_items = self._block_contents(rule.content)
        children = self._rule_list(nested_items, None)
        if not declarations and not children:
            return []
        return [_AtRule(keyword, prelude, declarations=declarations, children=children or None)]

    def _grouping_rule(
        self, rule, keyword: str, prelude: str, parents: Optional[List[str]], nested: bool
    ) -> List[_Node]:
        if not nested:
            items = tinycss2.parse_rule_list(rule.content, skip_comments=True, skip_whitespace=True)
            children = self._rule_list(items, None)
            return [_AtRule(keyword, prelude, children=children)] if children else []

        declarations, nested_items = self._block_contents(rule.content)
        if self.lower_nesting and parents is not None:
            children = [_StyleRule(parents, declarations)] if declarations else []
            children.extend(self._rule_list(nested_items, parents, nested=True))
            return [_AtRule(keyword, prelude, children=children)] if children else []

        children = self._rule_list(nested_items, None, nested=True)
        if not declarations and not children:
            return []
        return [_AtRule(keyword, prelude, declarations=declarations, children=children)]

    def _declaration(self, declaration) -> str:
        _check_tokens(declaration.value)
        if declaration.name.startswith("--"):
            name = declaration.name
            value = tinycss2.serialize(declaration.value).strip()
            if not value and self.minify:
                # A whitespace-only custom property must keep one space to stay valid.
                value = " "
        else:
            name = declaration.lower_name
            value = self._join(declaration.value, VALUE_SEPARATORS)
        if declaration.important:
            value += "!important" if self.minify else " !important"
        return f"{name}:{value}" if self.minify else f"{name}: {value}"

    def _selectors(self, prelude: Sequence, parents: Optional[List[str]], rule) -> List[str]:
        resolved: Dict[str, None] = {}
        for group in _split_commas(prelude):
            if not group:
                raise CssTransformError("empty selector", line=rule.source_line, column=rule.source_column)
            if parents is None:
                resolved.setdefault(self._join(group, SELECTOR_SEPARATORS), None)
                continue

            explicit = _contains_nesting_selector(group)
            for parent in parents:
                if explicit:
                    selector = self._join(group, SELECTOR_SEPARATORS, parent=parent)
                else:
                    child = self._join(group, SELECTOR_SEPARATORS)
                    starts_with_combinator = group[0].type == "literal" and group[0].value in SELECTOR_SEPARATORS
                    glue = "" if self.minify and starts_with_combinator else " "
                    selector = f"{parent}{glue}{child}"
                resolved.setdefault(selector, None)
        return list(resolved)

    # -- token serialization -------------------------------------------------

    def _join(
        self,
        tokens: Iterable,
        separators: set,
        parent: Optional[str] = None,
        expand_media: bool = False,
    ) -> str:
        parts: List[str] = []
        pending_space = False
        after_separator = False
        for token in tokens:
            if token.type == "comment":
                continue
            if token.type == "whitespace":
                pending_space = bool(parts)
                continue

            text = self._token_text(token, separators, parent, expand_media)
            is_separator = token.type == "literal" and token.value in separators
            tight = self.minify and (is_separator or after_separator)
            if pending_space and not tight:
                parts.append(" ")
            parts.append(text)
            pending_space = False
            after_separator = is_separator
        return "".join(parts).strip()

    def _token_text(self, token, separators: set, parent: Optional[str], expand_media: bool) -> str:
        if token.type == "literal" and token.value == "&" and parent is not None:
            return parent
        if token.type == "function":
            inner = self._join(token.arguments, separators, parent, expand_media)
            return f"{serialize_identifier(token.name)}({inner})"
        if token.type == "() block":
            if expand_media:
                expanded = self._expand_custom_media(token)
                if expanded is not None:
                    return expanded
            return f"({self._join(token.content, separators, parent, expand_media)})"
        if token.type == "[] block":
            return f"[{self._join(token.content, separators, parent, expand_media)}]"
        if token.type == "{} block":
            return f"{{{self._join(token.content, separators, parent, expand_media)}}}"
        return tinycss2.serialize([token])

    def _expand_custom_media(self, block) -> Optional[str]:
        inner = _strip_whitespace(list(block.content))
        if len(inner) != 1 or inner[0].type != "ident" or inner[0].value not in self.custom_media:
            return None
        query = self.custom_media[inner[0].value]
        text = self._join(query, PRELUDE_SEPARATORS)
        if len(query) == 1 and query[0].type == "() block":
            return text
        return f"({text})"

    # -- output --------------------------------------------------------------

    def _node_minified(self, node: _Node) -> str:
        if isinstance(node, _StyleRule):
            body = self._body_minified(node.declarations, node.children)
            return f"{','.join(node.selectors)}{{{body}}}"

        head = f"@{node.keyword} {node.prelude}" if node.prelude else f"@{node.keyword}"
        if not node.has_block:
            return f"{head};"
        body = self._body_minified(node.declarations or [], node.children or [])
        return f"{head}{{{body}}}"

    def _body_minified(self, declarations: List[str], children: List[_Node]) -> str:
        body = ";".join(declarations)
        if children:
            if body:
                body += ";"
            body += "".join(self._node_minified(child) for child in children)
        return body

    def _node_pretty(self, node: _Node, depth: int) -> str:
        indent = "  " * depth
        if isinstance(node, _StyleRule):
            head = ", ".join(node.selectors)
            declarations, children = node.declarations, node.children
        else:
            head = f"@{node.keyword} {node.prelude}" if node.prelude else f"@{node.keyword}"
            if not node.has_block:
                return f"{indent}{head};"
            declarations, children = node.declarations or [], node.children or []

        lines = [f"{indent}  {declaration};" for declaration in declarations]
        blocks = [self._node_pretty(child, depth + 1) for child in children]
        body = "\n".join(lines)
        if blocks:
            body = "\n\n".join(([body] if body else []) + blocks)
        if not body:
            return f"{indent}{head} {{\n{indent}}}"
        return f"{indent}{head} {{\n{body}\n{indent}}}"


def flatten_css(css: str, minify: bool = False, targets: Optional[BrowserTargets] = None) -> str:
    """Normalize ``css`` for the configured browser baseline.

    Raises:
        CssTransformError: when the input cannot be parsed.
    """

    if not css.strip():
        return ""
    flattener = CssFlattener(minify=minify, lower_nesting=needs_nesting_lowered(targets or BrowserTargets()))
    return flattener.transform(css)
