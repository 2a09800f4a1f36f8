"""
Integration test for the complete edit lifecycle.

This test demonstrates the full flow:
1. Build the camera schema edit
2. Publish it (simulated IPFS upload)
3. Fetch calldata for the published CID
4. Sign with a real eth-account key and broadcast to a simulated node
5. Confirm and report the receipt

To run this test locally:
    pytest tests/integration/ -v
"""
from __future__ import annotations

import json

from eth_account import Account

from grc20_publisher.graph import EditBuilder, unresolved_references
from grc20_publisher.keyring import SpaceBinding, create_keyring
from grc20_publisher.pipeline import run_pipeline
from grc20_publisher.recipes import build_camera_edit
from grc20_publisher.schema import Network


def test_camera_edit_is_published_and_confirmed(
    grc20_api, fake_chain, ctx, captured_output, test_private_key, decode_transaction
):
    grc20_api.upload_hash = "bafkreicamera"
    fake_chain.chain_id = 19411
    fake_chain.nonce = 3
    fake_chain.block_number = 77
    fake_chain.polls_before_receipt = 1

    builder = EditBuilder()
    edit = build_camera_edit(builder, "2025-01-01T00:00:00Z")
    assert unresolved_references(edit.ops) == []
    assert builder.sealed

    keyring = create_keyring(
        private_key=test_private_key,
        api_url="https://api.test",
        rpc_url="https://rpc.test",
        gas_limit=250_000,
    )
    space = SpaceBinding(space_id="FuvKkspixpHymrWbrRZDfc", network=Network.TESTNET)

    rpc = fake_chain.rpc()
    with grc20_api.client() as client:
        result = run_pipeline(edit, space, keyring, http_client=client, rpc=rpc, ctx=ctx, poll_interval=0)
    rpc.close()

    assert result.ok, result.error_message
    assert result.data == {
        "cid": "ipfs://bafkreicamera",
        "to": "0x1111111111111111111111111111111111111111",
        "data": "0xdeadbeef",
        "txHash": fake_chain.tx_hash,
        "blockNumber": 77,
        "status": "Success",
        "gasUsed": 21_000,
    }

    # Upload happened before calldata, which carried the published CID
    paths = [r.url.path for r in grc20_api.requests]
    assert paths == ["/ipfs/upload-edit", "/space/FuvKkspixpHymrWbrRZDfc/edit/calldata"]
    calldata_body = json.loads(grc20_api.requests[1].content)
    assert calldata_body == {"cid": "ipfs://bafkreicamera", "network": "TESTNET"}

    # The chain saw reads, one broadcast, and receipt polls until mined
    methods = fake_chain.methods()
    assert methods.count("eth_sendRawTransaction") == 1
    assert methods.count("eth_getTransactionReceipt") == 2
    assert methods.index("eth_gasPrice") < methods.index("eth_sendRawTransaction")

    raw = fake_chain.raw_transactions[0]
    assert Account.recover_transaction(raw) == Account.from_key(test_private_key).address

    # The keyring gas limit, node gas price, nonce and chain id were all used
    tx = decode_transaction(raw)
    assert tx["gas"] == 250_000
    assert tx["gasPrice"] == fake_chain.gas_price
    assert tx["nonce"] == 3
    assert tx["chainId"] == 19411
    assert tx["to"] == "0x1111111111111111111111111111111111111111"
    assert tx["data"] == "0xdeadbeef"
    assert tx["value"] == 0

    assert any("Transaction confirmed in block: 77" in line for line in captured_output)


def test_manual_mode_never_touches_the_chain(grc20_api, fake_chain, ctx):
    edit = EditBuilder().to_edit("Empty edit")
    keyring = create_keyring(api_url="https://api.test")
    space = SpaceBinding(space_id="MucL11M5HLWvLSVryrNKPB", network="MAINNET")

    with grc20_api.client() as client:
        result = run_pipeline(edit, space, keyring, http_client=client, rpc=fake_chain.rpc(), ctx=ctx)

    assert result.ok
    assert set(result.data) == {"cid", "to", "data"}
    assert fake_chain.calls == []
