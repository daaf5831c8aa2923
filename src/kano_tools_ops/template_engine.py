"""
template_engine.py - Handlebars-like template engine with managed loops.

Supports:
- {{ variable }} replacement (nested access via dot notation)
- {{#each list}} ... {{/each}} looping, driven through a LoopController
  - {{#each list as "name"}} names the loop for targeted commands
  - exclude="value" skips matching elements, until="value" stops before them
- {{#if (eq a "b")}} conditional (basic) or just {{#if variable}}
- {{#unless variable}} ... {{/unless}} inverse conditional
- loop tool expressions (prefix configurable, "loop" by default):
  - commands: {{loop.stop}}, {{loop.stop "name"}}, {{loop.stopTo "name"}},
    {{loop.stopAll}}, {{loop.skip 2}}, {{loop.skip 2 "name"}}
  - queries: {{loop.first}}, {{loop.last}}, {{loop.count}}, {{loop.depth}},
    each optionally followed by a loop name; usable in #if/#unless/eq
"""

import logging
import re
from collections import ChainMap
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from kano_tools_core.loop import LoopController

logger = logging.getLogger(__name__)

# Internal context slot for the per-render controller; loop items cannot shadow it.
_CONTROLLER_SLOT = "@loop"


class TemplateEngine:
    def __init__(self, loop_key: str = "loop"):
        self.loop_key = loop_key
        self._loop_re = re.compile(
            r"^" + re.escape(loop_key) + r"\.(?P<op>\w+)(?P<args>(?:\s+(?:\"[^\"]*\"|-?\d+))*)\s*$"
        )

    def render(self, template: str, context: Dict[str, Any]) -> str:
        """Render a template with a Handlebars-like subset (nested blocks supported).

        Each call gets its own LoopController, so loop state never leaks
        between renders.
        """
        loop = LoopController()
        root = ChainMap(context, {_CONTROLLER_SLOT: loop})
        rendered = self._render_segment(template, root, depth=0)
        if loop.get_depth():
            logger.warning(f"{loop.get_depth()} loop(s) still watched after render")
        return rendered

    @dataclass(frozen=True)
    class _Tag:
        raw: str
        start: int
        end: int  # index right after "}}"

    def _render_segment(self, template: str, context: ChainMap[str, Any], *, depth: int) -> str:
        if depth > 50:
            # Prevent runaway recursion on malformed templates.
            return template

        out: list[str] = []
        idx = 0
        while True:
            tag = self._find_next_tag(template, idx)
            if tag is None:
                out.append(template[idx:])
                break

            out.append(template[idx:tag.start])
            raw = tag.raw.strip()

            if raw.startswith("#each "):
                each_args = raw[len("#each ") :].strip()
                inner, next_idx = self._extract_block(template, tag.end, block_name="each")
                out.extend(self._render_each(each_args, inner, context, depth=depth))
                idx = next_idx
                continue

            if raw.startswith("#if "):
                cond = raw[len("#if ") :].strip()
                inner, next_idx = self._extract_block(template, tag.end, block_name="if")
                if self._eval_condition(cond, context):
                    out.append(self._render_segment(inner, context, depth=depth + 1))
                idx = next_idx
                continue

            if raw.startswith("#unless "):
                key = raw[len("#unless ") :].strip()
                inner, next_idx = self._extract_block(template, tag.end, block_name="unless")
                val = self._resolve(key, context)
                if not bool(val):
                    out.append(self._render_segment(inner, context, depth=depth + 1))
                idx = next_idx
                continue

            if raw.startswith("/"):
                # Stray closing tag: omit from output to keep rendered docs clean.
                idx = tag.end
                continue

            out.append(self._render_var(raw, context))
            idx = tag.end

        return "".join(out)

    _EACH_RE = re.compile(
        r'^(?P<key>[\w\.\[\]]+)(?:\s+as\s+"(?P<name>[^"]*)")?(?P<opts>(?:\s+(?:exclude|until)="[^"]*")*)\s*$'
    )
    _OPT_RE = re.compile(r'(exclude|until)="([^"]*)"')

    def _render_each(self, each_args: str, inner: str, context: ChainMap[str, Any], *, depth: int) -> List[str]:
        match = self._EACH_RE.match(each_args)
        if not match:
            logger.warning(f"Malformed #each tag: {each_args}")
            return []

        loop = self._controller(context)
        items = self._resolve(match.group("key"), context)
        name = match.group("name")
        managed = loop.watch(items) if name is None else loop.watch(items, name)
        if managed is None:
            return []

        for option, value in self._OPT_RE.findall(match.group("opts")):
            if option == "exclude":
                managed.exclude(value)
            else:
                managed.stop(value)

        out: list[str] = []
        while managed.has_next():
            item = next(managed)
            overlay: dict[str, Any] = {"this": item}
            if isinstance(item, dict):
                overlay.update(item)
            out.append(self._render_segment(inner, context.new_child(overlay), depth=depth + 1))
        return out

    def _render_var(self, key: str, context: ChainMap[str, Any]) -> str:
        if key == "this":
            return str(context.get("this", ""))
        val = self._resolve(key, context)
        return "" if val is None else str(val)

    def _find_next_tag(self, text: str, start: int) -> Optional[_Tag]:
        open_idx = text.find("{{", start)
        if open_idx == -1:
            return None
        close_idx = text.find("}}", open_idx + 2)
        if close_idx == -1:
            return None
        return self._Tag(raw=text[open_idx + 2 : close_idx], start=open_idx, end=close_idx + 2)

    def _extract_block(self, text: str, start_idx: int, *, block_name: str) -> Tuple[str, int]:
        """
        Return (inner_text, next_idx_after_close) for a block.

        Supports nesting of the same block type (e.g., nested each inside each).
        """
        open_tag = f"#{block_name}"
        close_tag = f"/{block_name}"
        depth = 1
        scan = start_idx
        while True:
            tag = self._find_next_tag(text, scan)
            if tag is None:
                # Malformed template: treat the rest as inner content.
                return text[start_idx:], len(text)

            raw = tag.raw.strip()
            if raw.startswith(open_tag + " "):
                depth += 1
            elif raw == close_tag:
                depth -= 1
                if depth == 0:
                    return text[start_idx:tag.start], tag.end

            scan = tag.end

    _EQ_RE = re.compile(r'^\(eq\s+([\w\.\[\]]+(?:\s+"[^"]*")?)\s+"([^"]*)"\s*\)$')

    def _eval_condition(self, cond: str, context: ChainMap[str, Any]) -> bool:
        match = self._EQ_RE.match(cond)
        if match:
            key = match.group(1)
            target_val = match.group(2)
            return str(self._resolve(key, context)) == target_val
        val = self._resolve(cond, context)
        return bool(val)

    def _resolve(self, expr: str, context: ChainMap[str, Any]) -> Any:
        match = self._loop_re.match(expr)
        if match:
            return self._eval_loop(match.group("op"), match.group("args"), context)
        return self._get_value(context, expr)

    _ARG_RE = re.compile(r'"([^"]*)"|(-?\d+)')

    def _eval_loop(self, op: str, arg_text: str, context: ChainMap[str, Any]) -> Any:
        """Run a loop tool command or query against the current render's controller."""
        loop = self._controller(context)
        args: list[Any] = [
            quoted if number == "" else int(number)
            for quoted, number in self._ARG_RE.findall(arg_text or "")
        ]
        # Unnamed directives target the innermost loop.
        named = tuple(a for a in args if isinstance(a, str))[:1]

        if op == "stop":
            loop.stop(*named)
        elif op == "stopTo":
            if named:
                loop.stop_to(named[0])
        elif op == "stopAll":
            loop.stop_all()
        elif op == "skip":
            numbers = [a for a in args if isinstance(a, int)]
            loop.skip(numbers[0] if numbers else 1, *named)
        elif op == "first":
            return loop.is_first(*named)
        elif op == "last":
            return loop.is_last(*named)
        elif op == "count":
            return loop.get_count(*named)
        elif op == "depth":
            return loop.get_depth()
        else:
            logger.warning(f"Unknown loop operation: {op}")
        return None

    def _controller(self, context: ChainMap[str, Any]) -> LoopController:
        return context.maps[-1][_CONTROLLER_SLOT]

    def _get_value(self, context: ChainMap[str, Any], path: str) -> Any:
        """Get value from context using dot notation."""
        parts = path.split('.')
        curr: Any = context
        try:
            for part in parts:
                # Handle array access [0]
                if part.endswith(']') and '[' in part:
                    p_name = part.split('[')[0]
                    idx = int(part.split('[')[1].rstrip(']'))
                    if p_name:
                         curr = curr[p_name]
                    curr = curr[idx]
                else:
                    if hasattr(curr, "get"):
                        curr = curr.get(part)
                    else:
                        return None

                if curr is None:
                    return None
            return curr
        except Exception:
            return None
