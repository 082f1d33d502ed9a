"""Core building blocks: paths, schema headers, platform facts, conditions."""
