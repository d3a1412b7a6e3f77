"""
The `config` package holds runtime configuration (`config.settings`) and the
SQLAlchemy engine/session wiring (`connection`).
"""
