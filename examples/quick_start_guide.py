#!/usr/bin/env python3
"""
Quick Start Guide for the XML Rule Transformer.

This example walks through the rule keys a callback can return: renaming and
removing tags, attribute rules, insertions, suppression and sub-tree
transforms.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from xml_rule_transformer import (
    SUPPRESS,
    NodeKind,
    TransformerConfig,
    XMLRuleTransformer,
    transform,
    transform_with_result,
)

DOCUMENT = """<article id="a1" lang="en">
  <title>Streaming <em>rules</em></title>
  <para class="lead">First paragraph &amp; more.</para>
  <internal>Editorial notes</internal>
  <para>Second paragraph.<br/></para>
  <code><![CDATA[if a < b: pass]]></code>
</article>"""


def article_rules(tag, attributes, kind):
    """Rule callback converting the article to HTML-like markup."""
    if tag == "article":
        return {"tag": "div", "@id": "@data-id", "@class": "article"}
    if tag == "title":
        return {"tag": "h1", "transform-inner": str.strip}
    if tag == "para":
        return {"tag": "p", "@class": False}
    if tag == "em":
        return {"tag": "i"}
    if tag == "internal":
        return SUPPRESS
    if tag == "br" and kind is NodeKind.EMPTY:
        return {"insert-after": "\n"}
    if tag == "code":
        return {"tag": "pre", "insert-before": "<!-- code -->"}
    return None


def quick_start_example():
    """Quick start example showing basic usage."""

    print("QUICK START - XML Rule Transformer")
    print("=" * 45)

    print("\nStep 1: Transforming a document")
    print("-" * 30)
    print(transform(DOCUMENT, article_rules))

    print("\nStep 2: Metrics")
    print("-" * 30)
    result = transform_with_result(DOCUMENT, article_rules)
    for name, value in result.metrics.to_dict().items():
        print(f"  {name}: {value}")


def cdata_and_styles_example():
    """Show CDATA flattening and compact empty tags."""

    print("\nCDATA and empty-tag styles")
    print("-" * 30)
    transformer = XMLRuleTransformer(article_rules, TransformerConfig.compact())
    print(transformer.transform(DOCUMENT))
    print(transformer.transform(DOCUMENT, TransformerConfig.plain_text_cdata()))
    print(f"Statistics: {transformer.statistics}")


def main():
    """Main function."""
    try:
        quick_start_example()
        cdata_and_styles_example()

        print("\nAll examples completed successfully!")
        return 0

    except Exception as e:
        print(f"\nExample failed: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
