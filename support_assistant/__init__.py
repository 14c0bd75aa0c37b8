"""VoltDrive customer support assistant.

Answers customer questions about VoltDrive electric vehicles by retrieving
excerpts from the product documentation and grounding a streamed LLM answer
on them.
"""
