"""Content producers: interchangeable HTML → Content implementations.

Modules:
    base: The :class:`ContentProducer` contract and its result type.
    heuristic: The rule-based extraction engine wrapped as a producer.
    agents: The language-model extractor/reviewer/formatter pipeline.
"""
