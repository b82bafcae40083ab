"""Packages rendered markup and CSS into a self-registering shadow-DOM element."""

from __future__ import annotations

from shadow_render.services.markup import collect_inline_styles, extract_body

HOST_TAG = "myco-shadow-box"
HOST_BASE_CSS = ":host{display:block;box-sizing:border-box}"

REGISTRATION_SCRIPT = f"""<script>
(()=>{{const TAG='{HOST_TAG}';
if(!window.customElements.get(TAG)){{
class MycoShadowBox extends HTMLElement{{
  constructor(){{
    super();
    const root = this.attachShadow({{mode:'open'}});
    const base = document.createElement('style');
    base.textContent = `
{HOST_BASE_CSS}
`;
    const cssT = this.querySelector(':scope > template.shadow-css');
    const htmlT = this.querySelector(':scope > template.shadow-html');
    const userCss = document.createElement('style');
    if (cssT){{ userCss.textContent = cssT.content.textContent || ''; cssT.remove(); }}
    let htmlFrag = document.createDocumentFragment();
    if (htmlT){{ htmlFrag = htmlT.content.cloneNode(true); htmlT.remove(); }}
    root.append(base, userCss, htmlFrag);
  }}
}}
customElements.define(TAG, MycoShadowBox);}}
}})();
</script>"""


def build_shadow_package(body_html: str, css: str) -> str:
    """Embed ``css`` and ``body_html`` in inert templates inside the host element."""

    return (
        f"\n{REGISTRATION_SCRIPT}\n\n"
        f"<{HOST_TAG}>\n"
        f'  <template class="shadow-css">{css}</template>\n'
        f'  <template class="shadow-html">{body_html}</template>\n'
        f"</{HOST_TAG}>\n"
    )


def build_shadow_html(document: str) -> str:
    """Turn a rendered document into an embeddable shadow package."""

    styles = "\n".join(collect_inline_styles(document))
    return build_shadow_package(extract_body(document), styles)
