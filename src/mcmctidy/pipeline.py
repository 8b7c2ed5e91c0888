"""
End-to-end tidy pipeline.

run_tidy chains the stages in order:
    source -> SampleCollection -> burn-in -> to_long -> thin -> summarize
"""

import time

from .collection import as_collection
from .config import clean_config, validate_tidy_config
from .reshape import to_long
from .summary import summarize
from .thinning import thin

import logging
logger = logging.getLogger('mcmctidy')


def run_tidy(source, tidy_config=None):
    """
    Tidy and summarize sampler output in one call.

    Args:
        source: Anything as_collection() accepts (SampleCollection,
            LongTable, SampleSource, history cube, list of chain matrices)
        tidy_config: Config dict (see mcmctidy.config); missing keys take
            their defaults

    Returns:
        Dict with:
            - collection: SampleCollection after parameter selection and burn-in
            - long: LongTable after thinning
            - summary: SummaryTable of the thinned draws
            - config: The cleaned config that was applied
    """
    tidy_config = clean_config(tidy_config)
    validate_tidy_config(tidy_config)

    start = time.perf_counter()
    collection = as_collection(source, tidy_config['parameters'])
    collection = collection.discard_burnin(tidy_config['burn_in'])

    long_table = thin(to_long(collection), tidy_config['thin'])
    summary = summarize(
        long_table,
        conf_level=tidy_config['conf_level'],
        chain=tidy_config['per_chain'],
        backend=tidy_config['backend'],
    )

    logger.info(
        f"Tidied {collection.n_chains} chains x {collection.n_iterations} iterations x "
        f"{collection.n_params} params -> {len(long_table)} long rows, "
        f"{len(summary)} summary rows in {time.perf_counter() - start:.4f}s"
    )

    return {
        'collection': collection,
        'long': long_table,
        'summary': summary,
        'config': tidy_config,
    }
