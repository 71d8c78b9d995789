"""
poolbreaker
Static + sandboxed deobfuscator for string-array JavaScript obfuscation
"""

__version__ = "0.3.0"
