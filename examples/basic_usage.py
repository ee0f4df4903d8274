"""
Redeemables: Basic Usage Example

Demonstrates:
- Wiring an offerer, a burnable collection and a reward collection
- Creating a campaign gated by a criteria commitment
- Previewing, then settling, a redemption through the settlement protocol
- Redeeming by safe-transfer straight to the offerer
"""

import logging
from dataclasses import replace

from redeemables import (
    CampaignParams,
    ConsiderationItem,
    Directory,
    EventRecorder,
    ItemType,
    OfferItem,
    OffererConfig,
    RedeemablesOfferer,
    SettlementProtocol,
    encode_context,
)
from redeemables.core.exceptions import InvalidConsiderationItem
from redeemables.settlement import (
    WILDCARD_CRITERIA,
    CriteriaResolution,
    merkle_proof,
    merkle_root,
)
from redeemables.tokens import RedeemableERC721


OFFERER    = "0x" + "0f" * 20
SETTLEMENT = "0x" + "5e" * 20
DEPLOYER   = "0x" + "d0" * 20
MANAGER    = "0x" + "a1" * 20
ALICE      = "0x" + "a7" * 20
BURN       = "0x000000000000000000000000000000000000dEaD"


def main():
    """Basic Redeemables usage."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 60)
    print("Redeemables: Basic Usage Example")
    print("=" * 60)
    print()

    # 1. Wire the world
    print("1. Wiring offerer and collections...")
    directory  = Directory()
    offerer    = RedeemablesOfferer(OffererConfig(OFFERER, SETTLEMENT), directory)
    settlement = SettlementProtocol(SETTLEMENT, directory)
    recorder   = offerer.emitter.subscribe(EventRecorder())

    tickets = RedeemableERC721("0x" + "c1" * 20, directory, DEPLOYER, "Tickets")
    badges  = RedeemableERC721("0x" + "c2" * 20, directory, DEPLOYER, "Badges")
    badges.set_redeemables_contract(DEPLOYER, OFFERER)
    for token_id in range(1, 11):
        tickets.mint(DEPLOYER, ALICE, token_id)
    tickets.set_approval_for_all(ALICE, SETTLEMENT, True)
    print()

    # 2. Campaign: burn one even-numbered ticket, get one badge
    print("2. Creating campaign...")
    eligible = [2, 4, 6, 8, 10]
    params = CampaignParams(
        offer=[OfferItem(ItemType.NON_FUNGIBLE_WITH_CRITERIA, badges.address, 0, 1, 1)],
        consideration=[ConsiderationItem(
            ItemType.NON_FUNGIBLE_WITH_CRITERIA, tickets.address, merkle_root(eligible), 1, 1, BURN,
        )],
        start_time=            0,
        end_time=              2 ** 40,
        max_total_redemptions= 3,
        manager=               MANAGER,
    )
    campaign_id = offerer.update_campaign(MANAGER, 0, params, "ipfs://badges")
    print(f"  campaign id: {campaign_id}")
    print()

    # 3. Preview, then settle
    print("3. Preview and settle ticket #4...")
    ctx = encode_context(campaign_id)
    choice = [CriteriaResolution(0, 4, merkle_proof(eligible, 4))]
    preview = settlement.preview(ALICE, offerer, ctx, choice)
    outcome = settlement.fulfill(ALICE, offerer, ctx, choice)
    print(f"  preview == outcome: {preview == outcome}")
    print(f"  ticket #4 now held by: {tickets.owner_of(4)}")
    print()

    # 4. Transfer-triggered redemption
    #    A transfer carries no proof, so it cannot redeem against the
    #    committed campaign. A second campaign accepts any ticket.
    print("4. Safe-transfer tickets to the offerer...")
    try:
        tickets.safe_transfer_from(ALICE, ALICE, OFFERER, 6, ctx)
    except InvalidConsiderationItem as exc:
        print(f"  ticket #6 against campaign {campaign_id}: rejected ({exc.code})")
    open_params = replace(params, consideration=[ConsiderationItem(
        ItemType.NON_FUNGIBLE_WITH_CRITERIA, tickets.address, WILDCARD_CRITERIA, 1, 1, BURN,
    )])
    open_id = offerer.update_campaign(MANAGER, 0, open_params, "ipfs://badges-open")
    tickets.safe_transfer_from(ALICE, ALICE, OFFERER, 6, encode_context(open_id))
    print(f"  ticket #6 against campaign {open_id}: redeemed")
    print(f"  badges held by Alice: {badges.balance_of(ALICE)}")
    print()

    for cid in (campaign_id, open_id):
        _, uri, total = offerer.get_campaign(cid)
        print(f"Campaign {cid} ({uri}): {total} redemption(s)")
    print(f"Events delivered: {[e.event_type for e in recorder.events]}")


if __name__ == "__main__":
    main()
