import numpy as np

from mixdrift.random_streams import (
    INSTANCE_STREAM,
    MODEL_STREAM,
    RandomStreams,
    make_rng,
    reseed_in_place,
)


def test_streams_are_independent_for_equal_seeds():
    streams = RandomStreams(instance_seed=1, model_seed=1)
    assert not np.array_equal(streams.model.random(5), streams.instance.random(5))


def test_consuming_one_stream_leaves_the_other_alone():
    a = RandomStreams(3, 4)
    b = RandomStreams(3, 4)
    a.model.random(100)
    np.testing.assert_array_equal(a.instance.random(5), b.instance.random(5))


def test_reseed_in_place_keeps_identity():
    rng = make_rng(7, MODEL_STREAM)
    first = rng.random(3)
    ref = rng
    reseed_in_place(rng, 7, MODEL_STREAM)
    assert ref is rng
    np.testing.assert_array_equal(rng.random(3), first)


def test_reseed_updates_seeds_and_state():
    streams = RandomStreams(1, 2)
    instance = streams.instance
    streams.reseed(10, 20)
    assert (streams.instance_seed, streams.model_seed) == (10, 20)
    assert streams.instance is instance
    np.testing.assert_array_equal(streams.instance.random(4),
                                  make_rng(10, INSTANCE_STREAM).random(4))
