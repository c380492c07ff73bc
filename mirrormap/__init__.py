"""
Mirror Map: block mirroring planner

Builds a gpmovemirrors configuration that moves a cluster from group or
spread mirroring to block mirroring.
Responsibilities:
- Host list and topology validation
- Block-local rotation of mirror partners
- Segment-level relocation directives
- Atomic plan file publication
"""

__version__ = "0.1.0"
