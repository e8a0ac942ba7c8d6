"""Heuristic content identification and extraction engine.

Modules:
    rules: Static selector, phrase and threshold tables.
    noise_filter: Boilerplate removal on the parsed tree.
    locator: Main-content location and deep cleaning.
    structured: Metadata, heading and quote extraction.
    normalizer: Text sanitising, rendering and reading statistics.
    parser: ``extract_content`` entry point tying the above together.
"""
