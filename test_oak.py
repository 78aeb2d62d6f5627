from __future__ import annotations

import math
import unittest
from typing import Any, Dict, List

import oak
from oak import (
    Key,
    KeyChain,
    MalformedStringError,
    Symbol,
    UnsupportedValueError,
    decode,
    encode,
    equivalent,
)


KEY_CHAIN_TEST = KeyChain({
    "a": Key(b"12345678901234567890123456789012"),
    "x": Key(b"12345678901234567890123456789012"),
    "y": Key(b"123456789x123456789x123456789x12"),
    "z": Key(b"123456789x123456789x123456789x12"),
})
KEY_CHAIN_LONG = KeyChain({"l0ng3r": Key(b"x" * 32)})
DEBUG_IV = b"1234567890ab"


def _cycle_pair() -> List[Any]:
    a: List[Any] = ["cycle_a"]
    b: List[Any] = ["cycle_b", a]
    a.append(b)
    return a


def _dag() -> List[Any]:
    c = ["dag_c"]
    b = ["dag_b", c]
    return ["dag_a", b, c]


def _catalogue() -> List[Any]:
    self_ref: List[Any] = []
    self_ref.append(self_ref)
    hash_cycle: Dict[Any, Any] = {}
    hash_cycle["me"] = hash_cycle
    shared = {"k": [1, 2]}
    return [
        None,
        True,
        False,
        0,
        1,
        -1,
        2 ** 100,
        -(2 ** 70),
        0.0,
        -0.0,
        0.12,
        -0.123,
        3.14159265358979,
        1e20,
        1.5e-07,
        math.inf,
        -math.inf,
        math.nan,
        "",
        "hello",
        "Hello, World!",
        "héllo wörld ☃",
        b"",
        b"\x00\xffbinary\x80",
        Symbol("foo"),
        Symbol("café"),
        [],
        {},
        [1, "2", 3.000001],
        {Symbol("foo"): "bar"},
        {Symbol("foo"): Symbol("bar")},
        ["hello"] + ["hello", Symbol("hello")] * 2,
        {1: "a", "b": 2, "": 4, None: 6, 2.5: [], False: {}},
        ["x"] * 13,
        [shared, shared, [shared]],
        _cycle_pair(),
        _dag(),
        self_ref,
        hash_cycle,
        [1, -123, 0.12, -0.123, math.nan, -math.inf, 3.14159265358979],
        "x" * 1000,
        list(range(500)),
    ]


OPTION_SETS: List[Dict[str, Any]] = [
    {},
    {"redundancy": "none", "format": "none", "compression": "none"},
    {"redundancy": "none", "compression": "lz4", "force": True},
    {"redundancy": "crc32", "compression": "zlib", "force": True},
    {"redundancy": "crc32", "compression": "bzip2", "force": True},
    {"redundancy": "sha1", "compression": "lzma", "force": True},
    {"compression": "zlib"},
    {"compression": "lzma", "format": "none"},
    {"force_oak_4": True},
    {"force_oak_4": True, "format": "none", "redundancy": "sha1"},
    {"key_chain": KEY_CHAIN_TEST},
    {"key_chain": KEY_CHAIN_TEST, "key": "a"},
    {"key_chain": KEY_CHAIN_TEST, "key": "y", "compression": "zlib", "force": True},
    {"key_chain": KEY_CHAIN_TEST, "key": "z", "format": "none", "redundancy": "sha1"},
    {"key_chain": KEY_CHAIN_LONG, "key": "l0ng3r", "compression": "lz4"},
]


class GoldenStringTests(unittest.TestCase):
    def test_encode_integer(self):
        self.assertEqual(encode(1), "oak_3CNB_3405226796_6_RjFJMQ_ok")
        self.assertEqual(encode(1, format="base64", redundancy="none"), "oak_3NNB_0_6_RjFJMQ_ok")
        self.assertEqual(encode(1, format="none", redundancy="crc32"), "oak_3CNN_3405226796_4_F1I1_ok")

    def test_decode_symbol_keyed_mapping(self):
        got = decode("oak_3NNB_0_30_RjNIMV8xXzJZQTNfZm9vU1UzX2Jhcg_ok")
        self.assertEqual(got, {Symbol("foo"): "bar"})
        self.assertNotIn("foo", got)

    def test_encode_strings(self):
        self.assertEqual(encode("Hello, World!"), "oak_3CNB_2351984628_27_RjFTVTEzX0hlbGxvLCBXb3JsZCE_ok")
        self.assertEqual(
            encode("Hello, World!", format="base64", redundancy="none"),
            "oak_3NNB_0_27_RjFTVTEzX0hlbGxvLCBXb3JsZCE_ok",
        )
        self.assertEqual(
            encode("Hello, World!", format="none", redundancy="crc32"),
            "oak_3CNN_2351984628_20_F1SU13_Hello, World!_ok",
        )

    def test_encrypted_hello_world(self):
        key_chain = KeyChain({"x": Key(b"12345678901234567890123456789012")})
        expected = (
            "oak_4x_B82_MTIzNDU2Nzg5MGFiMEfhQUC16K5VhOBTymoYFR03KbElBXBUR9UYsVEXOPXFNDkq7m_F8NM2cSxOniERUg_ok"
        )
        got = encode("Hello, World!", key_chain=key_chain, key="x", debug_iv=b"1234567890ab")
        self.assertEqual(got, expected)
        self.assertEqual(decode(got, key_chain=key_chain), "Hello, World!")
        with self.assertRaises(MalformedStringError):
            decode(got)
        other = encode("Hello, World!", key_chain=key_chain, key="x", debug_iv=b"1x3x5x7x90ab")
        self.assertEqual(
            other,
            "oak_4x_B82_MXgzeDV4N3g5MGFi82HmvjWx3e5g_29JHzKppGvc5h08fQC8qmAZLwnwYtiehPzqsZnOR1cZQceXSPyKnQ_ok",
        )
        self.assertEqual(decode(other, key_chain=key_chain), "Hello, World!")

    def test_hello_variants(self):
        cases = [
            ({}, "oak_3CNB_2640238464_16_RjFTVTZfSGVsbG8h_ok"),
            ({"compression": "zlib", "force": True}, "oak_3CZB_2640238464_27_eJxzMwwONYv3SM3JyVcEABePA8o_ok"),
            ({"force_oak_4": True}, "oak_4_B34_Q04yNjQwMjM4NDY0X0YxU1U2X0hlbGxvIQ_ok"),
            ({"force_oak_4": True, "format": "none"}, "oak_4_N25_CN2640238464_F1SU6_Hello!_ok"),
            (
                {"key": "a"},
                "oak_4a_B71_MTIzNDU2Nzg5MGFikCNVKE_dzZGqOFk7akDB8R03KbQkBHtfS9ccvVEXOPXFM1U9w2bF850_ok",
            ),
            (
                {"key": "a", "redundancy": "none"},
                "oak_4a_B59_MTIzNDU2Nzg5MGFi04uuu8jmzJbGZpXg9BQixxA3K91WBRo5Rbxi7GI9Zoc_ok",
            ),
            (
                {"key": "a", "compression": "zlib", "force": True},
                "oak_4a_B82_MTIzNDU2Nzg5MGFi0VS5btTmPDz1lpycH94l1B0jKbQkBHtfS9ccvVEpldWjCQRALf3hUXXTBn8h-8J2uQ_ok",
            ),
            (
                {"key": "y"},
                "oak_4y_B71_MTIzNDU2Nzg5MGFiuHMLh8whh6KjGn5DUEiEg6aODYnDQoLbFmyc302I_SdHzQvqIfmgrxs_ok",
            ),
            (
                {"key": "z"},
                "oak_4z_B71_MTIzNDU2Nzg5MGFiU342iM2a5ZMbsfbJIw6ww6aODYnDQoLbFmyc302I_SdHzQvqIfmgrxs_ok",
            ),
            (
                {"key": "y", "compression": "zlib", "force": True},
                "oak_4y_B82_MTIzNDU2Nzg5MGFi4uo_bg71otWPRdHezwh62qaaDYnDQoLbFmyc3022UAch91qXz2KEDfNOPnDZjTSPVQ_ok",
            ),
        ]
        for opts, expected in cases:
            with self.subTest(opts=opts):
                if "key" in opts:
                    opts = dict(opts, key_chain=KEY_CHAIN_TEST, debug_iv=DEBUG_IV)
                got = encode("Hello!", **opts)
                self.assertEqual(got, expected)
                self.assertEqual(decode(got, key_chain=KEY_CHAIN_TEST), "Hello!")

    def test_decode_archived_strings(self):
        archived = [
            ([1, 2, 3], [
                "oak_3NNN_0_16_F4A3_1_2_3I1I2I3_ok",
                "oak_3N4B_0_26_EPABRjRBM18xXzJfM0kxSTJJMw_ok",
                "oak_3CZB_2690303115_32_eJxzM3E0jjeMN4o39jT0NPI0BgAjLwQT_ok",
                "oak_3CBB_2690303115_67_QlpoOTFBWSZTWcHMhhYAAASOADwAISAAAKAAIhkNqEMCIJJQCoNvxdyRThQkMHMhhYA_ok",
                "oak_3SMB_93d431eee5bda8c932415ff77c6dbeff5bf09327_46_XQAAgAAQAAAAAAAAAAAjDQQjWUQtVGJnd4Z_40qnoHiC-w_ok",
                "oak_4_N29_CN2690303115_F4A3_1_2_3I1I2I3_ok",
                "oak_4_B39_Q04yNjkwMzAzMTE1X0Y0QTNfMV8yXzNJMUkySTM_ok",
                "oak_4l0ng3r_B76_z3addGUu282MCm6w0KxfW17tyZRH4RZcr4esDoNbBgFZwhdcXLw2tItgdwAJSUk99hJDrRUeczpl_ok",
            ]),
            ({Symbol("foo"): "foo", "foo": ["x"] * 10}, [
                "oak_3NNN_0_53_F6H2_1_2_3_4YA3_foosU0sU0A10_5_5_5_5_5_5_5_5_5_5SU1_x_ok",
            ]),
            (-1, ["oak_3NNN_0_5_F1I-1_ok"]),
            (None, ["oak_3NNN_0_3_F1n_ok"]),
        ]
        for expected, strings in archived:
            for s in strings:
                with self.subTest(s=s):
                    self.assertEqual(decode(s, key_chain=KEY_CHAIN_LONG), expected)

    def test_decode_archived_nan(self):
        self.assertTrue(math.isnan(decode("oak_3NNN_0_6_F1FNaN_ok")))

    def test_archived_shared_strings_are_distinct_slots(self):
        got = decode("oak_3NNN_0_53_F6H2_1_2_3_4YA3_foosU0sU0A10_5_5_5_5_5_5_5_5_5_5SU1_x_ok")
        xs = got["foo"]
        self.assertEqual(len(xs), 10)
        self.assertTrue(all(x is xs[0] for x in xs))

    def test_bad_lzma_payload_is_malformed(self):
        with self.assertRaises(MalformedStringError):
            decode("oak_3NMN_0_16_F4A3_1_2_3I1I2I3_ok")


class RoundTripTests(unittest.TestCase):
    def test_catalogue_under_every_option_set(self):
        for opts in OPTION_SETS:
            for obj in _catalogue():
                with self.subTest(opts=opts, obj=type(obj).__name__):
                    wrapped = encode(obj, **opts)
                    got = decode(wrapped, key_chain=opts.get("key_chain"))
                    self.assertTrue(equivalent(obj, got), f"{obj!r} != {got!r}")

    def test_cycle_round_trip_preserves_identity(self):
        a = _cycle_pair()
        got = decode(encode(a))
        self.assertTrue(equivalent(a, got))
        self.assertIs(got[1][1], got)
        self.assertEqual(got[0], "cycle_a")
        self.assertEqual(got[1][0], "cycle_b")

    def test_dag_round_trip_shares_node(self):
        got = decode(encode(_dag()))
        self.assertIs(got[1][1], got[2])
        self.assertEqual(got[2], ["dag_c"])

    def test_equal_but_distinct_containers_stay_distinct(self):
        obj = [[1], [1]]
        got = decode(encode(obj))
        self.assertEqual(got, [[1], [1]])
        self.assertIsNot(got[0], got[1])

    def test_deeply_nested_value_does_not_overflow(self):
        obj: List[Any] = []
        cur = obj
        for _ in range(5000):
            nxt: List[Any] = []
            cur.append(nxt)
            cur = nxt
        got = decode(encode(obj, format="none"))
        self.assertTrue(equivalent(obj, got))

    def test_bytes_and_str_keep_their_types(self):
        got = decode(encode([b"abc", "abc", Symbol("abc")]))
        self.assertEqual([type(x) for x in got], [bytes, str, Symbol])

    def test_accepts_bytes_input(self):
        wrapped = encode({"k": 1})
        self.assertEqual(decode(wrapped.encode("ascii")), {"k": 1})

    def test_raw_format_with_binary_payload(self):
        obj = [b"\x00\x01\xfe\xff", "€"]
        wrapped = encode(obj, format="none", compression="zlib", force=True)
        self.assertEqual(decode(wrapped), obj)


class PropertyTests(unittest.TestCase):
    def test_determinism_without_key(self):
        for opts in OPTION_SETS:
            if "key" in opts:
                continue
            for obj in _catalogue():
                with self.subTest(opts=opts, obj=type(obj).__name__):
                    self.assertEqual(encode(obj, **opts), encode(obj, **opts))

    def test_encryption_is_randomized(self):
        seen = set()
        for _ in range(1000):
            wrapped = encode("Hello, World!", key_chain=KEY_CHAIN_TEST, key="a")
            seen.add(wrapped)
            self.assertEqual(decode(wrapped, key_chain=KEY_CHAIN_TEST), "Hello, World!")
        self.assertEqual(len(seen), 1000)

    def test_size_monotonicity_without_force(self):
        for obj in _catalogue():
            baseline = len(encode(obj, compression="none"))
            for compression in oak.COMPRESSION_2_CODE:
                with self.subTest(obj=type(obj).__name__, compression=compression):
                    self.assertLessEqual(len(encode(obj, compression=compression)), baseline)

    def test_compression_falls_back_to_none_when_not_smaller(self):
        self.assertTrue(encode("Hello!", compression="lzma").startswith("oak_3CNB_"))
        self.assertTrue(encode("x" * 1000, compression="lzma").startswith("oak_3CMB_"))

    def test_default_output_is_url_safe_ascii(self):
        for obj in _catalogue():
            wrapped = encode(obj, key_chain=KEY_CHAIN_TEST, key="a")
            self.assertTrue(wrapped.isascii())
            self.assertNotIn("=", wrapped)
            self.assertNotIn("+", wrapped)
            self.assertNotIn("/", wrapped)

    def test_unsupported_values_rejected(self):
        class Custom:
            pass

        class MyList(list):
            pass

        unhappy = [
            Custom(),
            object(),
            (1, 2),
            {1, 2},
            frozenset(),
            bytearray(b"x"),
            1j,
            MyList(),
            [1, 2, Custom()],
            {"k": (1,)},
            {(1, 2): "v"},
            "\ud800",
        ]
        for obj in unhappy:
            with self.subTest(obj=repr(obj)):
                with self.assertRaises(UnsupportedValueError):
                    encode(obj)


if __name__ == "__main__":
    unittest.main()
