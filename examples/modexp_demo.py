#!/usr/bin/env python3
"""
Modular Exponentiation Proof Demo for zkmodexp.

This demo proves knowledge of a private (base, exponent, modulus) whose
modular power equals a public value, then records verifications with a
recording verifier.
"""

import logging

from zkmodexp.crypto.zkp import (
    MalformedProofError,
    Witness,
    WitnessConstructionError,
    ZKPConfig,
    ZKPManager,
)
from zkmodexp.logging import LogConfig, LogLevel, setup_logging

logger = logging.getLogger("zkmodexp.demo")


def main():
    """Run the modular exponentiation proof demo."""
    setup_logging(LogConfig(level=LogLevel.INFO, format_type="text"))
    logger.info("zkmodexp Modular Exponentiation Demo")

    manager = ZKPManager(ZKPConfig())
    manager.initialize()
    info = manager.get_circuit_info()
    logger.info(
        "Circuit %s: %d rounds, %d constraints",
        info["circuit_id"],
        info["rounds"],
        info["constraint_count"],
    )

    recording = manager.create_recording_verifier()
    recording.subscribe(lambda event: logger.info("Event: %s", event.to_dict()))

    result = manager.generate_proof(Witness(2, 10, 1000))
    y = result.public_inputs[0]
    logger.info("Proved 2^10 mod 1000 = %s (%d-byte proof)", y, len(result.proof))

    logger.info("Honest output accepted: %s", recording.verify_and_store(result.proof, [y]))
    logger.info("Wrong output accepted: %s", recording.verify_and_store(result.proof, [25]))

    try:
        recording.verify_and_store(result.proof[:64], [y])
    except MalformedProofError as e:
        logger.info("Truncated proof rejected structurally: %s", e.message)

    try:
        manager.generate_proof(Witness(3, 6, 0))
    except WitnessConstructionError as e:
        logger.info("Zero modulus cannot be proven: %s", e.message)

    logger.info("Last record: %s", recording.record.to_dict())
    manager.cleanup()


if __name__ == "__main__":
    main()
