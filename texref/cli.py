import sys

import texref as tr

try:
    import click
except ImportError:
    raise ImportError("texref.cli requires the 'click' package to be installed. Please install it using 'pip install click' or 'pip install texref[cli]'.")

from texref.cases import enumerate_base_clamp_to_edge_cases, self_check

@click.command()
@click.option('--verbose', is_flag=True, help="Will print verbose messages, including every evaluated sample.")
@click.option('--log_info', is_flag=True, help="Will print a summary line per case.")
@click.option('--list_formats', is_flag=True, help="Print the supported texel formats and exit.")
@click.option('--count', default=50, show_default=True, help="Number of sample points per case.")
@click.option('--seed', default=0, show_default=True, help="Seed of the random texels and sample points.")
@click.version_option(version=tr.__version__)
def cli_entrypoint(verbose, log_info, list_formats, count, seed):
    if verbose:
        tr.initialize(log_level=tr.LogLevel.VERBOSE)
    elif log_info:
        tr.initialize(log_level=tr.LogLevel.INFO)
    else:
        tr.initialize(log_level=tr.LogLevel.WARNING)

    if list_formats:
        for texel_format in tr.TexelFormat:
            info = texel_format.value
            print(f"{info.name}: {info.components} x {info.bits}-bit {info.kind.value}{' srgb' if info.srgb else ''}")
        return

    failed_cases = 0
    total_cases = 0

    for case in enumerate_base_clamp_to_edge_cases(count, seed):
        total_cases += 1
        verdict = self_check(case)

        if not verdict.passed:
            failed_cases += 1
            print(f"FAIL {case.name}\n{verdict.report()}")

    print(f"{total_cases - failed_cases} of {total_cases} cases passed the self check")

    if failed_cases != 0:
        sys.exit(1)
