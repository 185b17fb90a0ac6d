# CrossCheck Engine
# Rule-based contradictions between testimony and evidence

"""
Statements and exhibits are compared on three axes (time, place, identity).
A contradiction is reported on the first conflicting pair of facts, and is
recorded in the dossier of every suspect it affects.
"""
