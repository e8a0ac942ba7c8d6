"""Language-model content producer (extractor → reviewer → formatter)."""
