"""
Legal move detection.

Clients use this to decide which controls to offer. It only predicts:
the engine still validates every action it receives.
"""

from typing import List

from monopoly_core.engine import ActionType, TurnEngine
from monopoly_core.properties import PropertyLedger
from monopoly_core.spaces import SpaceKind
from monopoly_core.state import GamePhase, GameState


def get_legal_actions(engine: TurnEngine, state: GameState, player_id: str) -> List[ActionType]:
    """
    Get all legal action types available to a player.

    Args:
        engine: Engine holding the board and rule configuration
        state: Current game state
        player_id: Player to get actions for

    Returns:
        Action types in a stable order, empty when the player cannot act
    """
    player = state.find_player(player_id)
    if state.phase == GamePhase.ENDED or player is None or not player.is_active:
        return []

    actions: List[ActionType] = []
    is_current = state.current_player.player_id == player_id

    # During auctions any remaining bidder may act, whoever's turn it is
    if state.phase == GamePhase.AUCTION:
        if state.auction is not None and player_id in state.auction.bidders:
            actions.append(ActionType.AUCTION_BID)
            if player_id != state.auction.high_bidder:
                actions.append(ActionType.AUCTION_PASS)
        if is_current:
            actions.append(ActionType.DECLARE_BANKRUPTCY)
        return actions

    if state.phase == GamePhase.TRADING:
        trade = state.pending_trade
        if trade is not None:
            if player_id == trade.recipient_id:
                actions.append(ActionType.TRADE_ACCEPT)
            if trade.involves(player_id):
                actions.append(ActionType.TRADE_REJECT)
        if is_current:
            actions.append(ActionType.DECLARE_BANKRUPTCY)
        return actions

    if is_current:
        if state.phase == GamePhase.BUYING:
            space = engine.board.space_at(player.position)
            if player.cash >= space.price:
                actions.append(ActionType.BUY_PROPERTY)
            actions.append(ActionType.DECLINE_PURCHASE)
        elif state.pending_rent is not None:
            actions.append(ActionType.PAY_RENT)
        elif state.roll_pending:
            if state.phase == GamePhase.ROLLING or len(state.active_players) >= engine.config.min_players:
                actions.append(ActionType.ROLL_DICE)
            if player.in_jail:
                if player.cash >= engine.config.jail_fee:
                    actions.append(ActionType.PAY_JAIL_FEE)
                if player.jail_cards:
                    actions.append(ActionType.USE_GET_OUT_OF_JAIL_CARD)
        else:
            actions.append(ActionType.END_TURN)

    actions.extend(_get_property_management_actions(engine, state, player_id))

    if is_current:
        if state.pending_trade is None and len(state.active_players) > 1:
            actions.append(ActionType.TRADE_OFFER)
        actions.append(ActionType.DECLARE_BANKRUPTCY)
    return actions


def _get_property_management_actions(engine: TurnEngine, state: GameState, player_id: str) -> List[ActionType]:
    """Action types for building, selling and mortgaging the player's holdings."""
    ledger = PropertyLedger(engine.board, state.properties)
    player = state.find_player(player_id)
    found = set()

    for prop in ledger.owned_by(player_id):
        space = engine.board.space_at(prop.space_id)
        if prop.mortgaged:
            if player.cash >= space.mortgage_value:
                found.add(ActionType.UNMORTGAGE_PROPERTY)
            continue
        if not ledger.group_has_buildings(space):
            found.add(ActionType.MORTGAGE_PROPERTY)
        if space.kind != SpaceKind.PROPERTY:
            continue
        if ledger.can_build_house(prop.space_id) and player.cash >= space.house_cost:
            found.add(ActionType.BUILD_HOUSE)
        if ledger.can_build_hotel(prop.space_id) and player.cash >= space.hotel_cost:
            found.add(ActionType.BUILD_HOTEL)
        if prop.houses > 0:
            found.add(ActionType.SELL_HOUSE)
        if prop.hotels > 0:
            found.add(ActionType.SELL_HOTEL)

    return [action for action in ActionType if action in found]
