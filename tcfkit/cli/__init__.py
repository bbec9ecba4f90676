"""TCF CLI Tools - command-line utilities for TCF consent strings.

This package provides a unified `tcf` command with subcommands for
decoding consent strings and analyzing them against a local GVL.

Usage:
    tcf --help                          # Show all available commands
    tcf consent decode <string>         # Decode the Core segment
    tcf consent vendor <string> <id>    # Resolve one vendor
    tcf gvl analyze <string> --gvl F    # GVL-enriched analysis
"""
