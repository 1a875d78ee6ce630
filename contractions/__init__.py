"""
Contractions feature package.

Times labor contractions, logs them in day-bucketed sessions, derives running
statistics and persists everything to a single key-value record.

The GUI entry point is :func:`contractions.gui.create_feature_view`; everything below
``logic/`` is Tk-free and can be driven directly (see ``tests/``).
"""
