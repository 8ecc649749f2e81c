"""Dashboard publishing components.

This module turns statistics snapshots into named dashboard events
and runs the periodic jobs that recompute and publish them.
"""
