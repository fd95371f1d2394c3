#!/usr/bin/env python3
"""
Tessellate random node sets on the sphere.

Creates a number of random node sets, builds their tessellation and queries
the Voronoi network, the Voronoi cell areas and the Delaunay links.

Usage:
    python examples/random_sphere_runs.py -N 10000 -R 5
    python examples/random_sphere_runs.py -N 10000 -R 5 --seed 42 -r 3

Use -r together with the seed of a failed batch to repeat just the run
that failed: the node sets of all earlier runs are still generated, so the
selected run sees the same nodes.
"""

import argparse
import sys

import numpy as np
import structlog

from py_sphtess import DelaunayAlgorithm, SphericalTessellation, TessellationError, TessellationOptions
from py_sphtess.config import settings
from py_sphtess.utils.log_setup import configure_logging
from py_sphtess.utils.random import random_seed, random_sphere_nodes

logger = structlog.get_logger()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Tessellate random node sets on the sphere")
    parser.add_argument("-N", "--nodes", type=int, required=True, help="Nodes per run")
    parser.add_argument("-R", "--runs", type=int, default=1, help="Number of runs")
    parser.add_argument("-r", "--run", type=int, default=None,
                        help="Only execute this run (0-based), skip the others")
    parser.add_argument("--seed", type=int, default=None, help="Seed of the whole batch")
    parser.add_argument("--algorithm", choices=[a.value for a in DelaunayAlgorithm],
                        default=settings.algorithm)
    parser.add_argument("--tolerance", type=float, default=settings.tolerance)
    parser.add_argument("--log-level", default=settings.log_level)
    args = parser.parse_args(argv)
    if args.nodes <= 0:
        parser.error("N must be positive")
    return args


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    seed = args.seed if args.seed is not None else random_seed()
    logger.info("Creating random nodes", seed=seed, nodes=args.nodes, runs=args.runs)
    rng = np.random.default_rng(seed)
    options = TessellationOptions(tolerance=args.tolerance,
                                  algorithm=DelaunayAlgorithm(args.algorithm),
                                  on_error_display_nodes=True)

    for run in range(args.runs):
        nodes = random_sphere_nodes(args.nodes, rng=rng)
        if args.run is not None and run != args.run:
            logger.info("Skipping run", run=run)
            continue

        logger.info("Starting run", run=run, of=args.runs)
        try:
            tessellation = SphericalTessellation(nodes, options)
        except TessellationError as e:
            logger.error("Run failed", run=run, seed=seed, kind=e.kind.value, error=str(e))
            return 1

        vertices, links = tessellation.voronoi_tesselation()
        areas = tessellation.voronoi_cell_areas()
        delaunay_links = tessellation.delaunay_triangulation()
        logger.info("Run complete", run=run,
                    voronoi_vertices=len(vertices), voronoi_links=len(links),
                    delaunay_links=len(delaunay_links),
                    area_deviation=float(abs(areas.sum() - 4 * np.pi)))

    logger.info("Finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
