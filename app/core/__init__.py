"""
Noyau transverse : configuration et contrôle d'accès.
"""
