# CLI package for the CrossCheck engine
"""
Command line interface for checking a case file.

Commands:
    crosscheck check     - Check a statement or an exhibit against an exhibit
    crosscheck sweep     - Check all of a suspect's statements against all evidence
    crosscheck resolve   - Detect a contradiction and apply a resolution to it
    crosscheck dossier   - Show a suspect's dossier
"""
