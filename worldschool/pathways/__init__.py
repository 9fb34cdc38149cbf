"""Learning pathway synthesis pipeline.

Stages:
- Day-set resolution (which dates are planned)
- Draft generation (three candidate outlines)
- Draft edit overlay (caller edits that survive regeneration)
- Finalization (detailed plan, schema validation, venue enrichment)
- Materialization (schedule blocks merged with manual blocks)
"""
