# --------------------------------------------------------------------
# Requirements: torch
# --------------------------------------------------------------------
"""
WiSARD Test Suite

Run everything with pytest, or a single module directly:
	python tests/test_sparse_memory.py     # neuron storage
	python tests/test_retina_mapping.py    # input permutation
	python tests/test_discriminator.py     # addressing, thermometer encoding, mental image
	python tests/test_bleaching.py         # tie-break
	python tests/test_wisard.py            # ensemble, config, logging
"""
