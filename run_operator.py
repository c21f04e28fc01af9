#!/usr/bin/env python3
"""
Launch the etcd-operator with Kopf.

Registers the operator handlers, then hands over to Kopf's CLI with all
standard arguments.

Usage:
    python run_operator.py [any kopf run arguments]

Examples:
    python run_operator.py --verbose --all-namespaces
    python run_operator.py -n my-namespace --log-format=json
"""
import sys


def main():
    import kopf.cli

    # Import the operator module (which registers handlers via decorators)
    import etcd_operator.app  # noqa: F401

    # Behave as if the user called: kopf run <args>
    sys.argv.insert(1, "run")
    return kopf.cli.main(prog_name="kopf")


if __name__ == "__main__":
    sys.exit(main())
