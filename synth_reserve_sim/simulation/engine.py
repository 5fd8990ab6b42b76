#!/usr/bin/env python3
"""
Stablecoin Simulation Engine

Drives a wired deployment through a market path: prices move, agents mint,
redeem, recollateralize and buy back, the controller refreshes the target
ratio and the reserve rebalances its vault. Every step is recorded for the
analysis layer.
"""

import random
from collections import Counter
from typing import Dict, List, Optional

import numpy as np

from ..agents.arbitrageur import Arbitrageur
from ..agents.base_agent import AgentAction, BaseAgent
from ..agents.minter import Minter
from ..agents.redeemer import Redeemer
from ..core.errors import ReserveSimError, UndefinedRatioError
from ..core.math import FixedPointMath, ONE
from ..engine.config import SimulationConfig
from .builder import ProtocolSystem, add_share_liquidity, deploy_system
from .state import MarketState

to_fixed = FixedPointMath.to_fixed
from_fixed = FixedPointMath.from_fixed


class StablecoinSimulationEngine:
    """Agent-based simulation of the reserve, controller and pool"""

    MARKET_HOLDER = "market"
    KEEPER = "keeper"

    def __init__(self, config: Optional[SimulationConfig] = None):
        self.config = config or SimulationConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self.agent_rng = random.Random(self.config.seed)

        self.market = MarketState(
            collateral_price=self.config.collateral_price,
            share_price=self.config.share_price,
            synth_price=self.config.synth_price,
            volatilities={
                "collateral": self.config.collateral_volatility,
                "share": self.config.share_volatility,
                "synth": self.config.synth_volatility,
            },
            synth_mean_reversion=self.config.synth_mean_reversion,
        )
        self.system = self._deploy()
        self.agents = self._initialize_agents()
        self._setup_initial_positions()

        self.shock_schedule: Dict[int, Dict[str, float]] = {}
        for shock in self.config.price_shocks:
            self.shock_schedule.setdefault(shock.step, {})[shock.asset] = shock.change

        self.current_step = 0
        self.metrics_history: List[dict] = []
        self.agent_actions_history: List[dict] = []
        self.refresh_history: List[dict] = []
        self.rejections: Counter = Counter()
        self.action_counts: Counter = Counter()
        self._step_actions = 0
        self._step_rejections = 0

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _deploy(self) -> ProtocolSystem:
        reserve_params = self.config.reserve.model_copy(
            update={"global_collateral_ratio": to_fixed(self.config.initial_collateral_ratio)}
        )
        return deploy_system(
            reserve_params=reserve_params,
            pool_params=self.config.pool,
            controller_params=self.config.controller,
            stable_controller=self.config.use_stable_controller,
            collateral_price=to_fixed(self.config.collateral_price),
            share_price=to_fixed(self.config.share_price),
            synth_price=to_fixed(self.config.synth_price),
            with_vault=self.config.vault_rebalance_interval > 0,
        )

    def _initialize_agents(self) -> Dict[str, BaseAgent]:
        """Initialize agents based on configuration"""
        agents = {}
        cfg = self.config

        for i in range(cfg.num_minters):
            agent_id = f"minter_{i}"
            agents[agent_id] = Minter(agent_id, cfg.agent_initial_collateral, cfg.agent_initial_share,
                                      rng=self.agent_rng)

        for i in range(cfg.num_redeemers):
            agent_id = f"redeemer_{i}"
            agents[agent_id] = Redeemer(agent_id, cfg.agent_initial_collateral, rng=self.agent_rng)

        for i in range(cfg.num_arbitrageurs):
            agent_id = f"arbitrageur_{i}"
            agents[agent_id] = Arbitrageur(agent_id, cfg.agent_initial_collateral, cfg.agent_initial_share,
                                           rng=self.agent_rng)

        for agent in agents.values():
            # Arbitrageurs keep their own, higher activity level
            if agent.agent_type != "arbitrageur":
                agent.action_probability = cfg.action_probability
            agent.max_action_fraction = cfg.max_action_fraction
        return agents

    def _setup_initial_positions(self):
        """Seed the ledgers so agent wallets and the reserve match the configured state"""
        system = self.system
        cfg = self.config

        agent_synth = 0
        for agent in self.agents.values():
            balances = agent.state.balances
            synth = min(to_fixed(balances["synth"]), to_fixed(cfg.initial_synth_supply) - agent_synth)
            synth = max(synth, 0)
            agent_synth += synth
            system.fund(agent.agent_id, collateral=to_fixed(balances["collateral"]),
                        share=to_fixed(balances["share"]), synth=synth)

        market_synth = to_fixed(cfg.initial_synth_supply) - agent_synth
        if market_synth > 0:
            system.fund(self.MARKET_HOLDER, synth=market_synth)

        backing_value = cfg.initial_synth_supply * cfg.initial_collateral_ratio * cfg.synth_price
        system.seed_reserve(to_fixed(backing_value / cfg.collateral_price))

        # Share liquidity split across two pairs with opposite token order
        half = cfg.initial_share_liquidity / 2
        self._pair_base_reserve = to_fixed(half)
        other = to_fixed(half * cfg.share_price / cfg.collateral_price)
        add_share_liquidity(system, self._pair_base_reserve, other, share_first=True)
        add_share_liquidity(system, self._pair_base_reserve, other, share_first=False)

        if system.vault is not None:
            system.reserve.enter_vault(system.owner, 0)

        prices = self.market.current_prices
        for agent in self.agents.values():
            self._sync_agent(agent)
            agent.state.initial_value = agent.state.portfolio_value(prices)

    def _sync_agent(self, agent: BaseAgent):
        system = self.system
        agent.state.sync(
            collateral=from_fixed(system.collateral.balance_of(agent.agent_id)),
            share=from_fixed(system.share.balance_of(agent.agent_id)),
            synth=from_fixed(system.synth.balance_of(agent.agent_id)),
        )

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run_simulation(self, steps: Optional[int] = None) -> Dict:
        """Run simulation for specified number of steps"""
        steps = steps or self.config.num_steps

        for step in range(steps):
            self.current_step = step
            self._step_actions = 0
            self._step_rejections = 0

            # Market dynamics
            if step > 0:
                self.market.step(self.rng)
            if step in self.shock_schedule:
                self.market.apply_price_shock(self.shock_schedule[step])
                print(f"Applied price shock at step {step}: {self.shock_schedule[step]}")
            self._update_oracles()
            self._update_share_liquidity()

            self._process_agent_actions()

            if step % self.config.refresh_interval == 0:
                self._refresh_controller()

            self._manage_vault(step)
            self._record_metrics()
            self.system.clock.advance(self.config.step_seconds)

            if step % 100 == 0:
                print(f"Simulation step {step}/{steps}")

        return self._generate_results()

    def _update_oracles(self):
        prices = self.market.current_prices
        for name, oracle in (("collateral", self.system.collateral_oracle),
                             ("share", self.system.share_oracle),
                             ("synth", self.system.synth_oracle)):
            oracle.mock(to_fixed(prices[name]))
            oracle.update()

    def _update_share_liquidity(self):
        """Constant-product pools hold more share units as the share price falls"""
        scale = float(np.sqrt(self.market.initial_prices["share"] / self.market.current_prices["share"]))
        share_reserve = to_fixed(from_fixed(self._pair_base_reserve) * scale)
        other_reserve = to_fixed(from_fixed(self._pair_base_reserve) / scale
                                 * self.market.initial_prices["share"]
                                 / self.market.current_prices["collateral"])
        for pair in self.system.pairs:
            if pair.token0 is self.system.share:
                pair.set_reserves(share_reserve, other_reserve)
            else:
                pair.set_reserves(other_reserve, share_reserve)

    def _process_agent_actions(self):
        """Process actions for all agents in a random order"""
        order = list(self.agents.keys())
        self.agent_rng.shuffle(order)

        for agent_id in order:
            agent = self.agents[agent_id]
            if not agent.active:
                continue

            self._sync_agent(agent)
            protocol_state = self._get_protocol_state()
            action_type, params = agent.decide_action(protocol_state, self.market.current_prices)

            if action_type != AgentAction.HOLD:
                self._execute_agent_action(agent, action_type, params)
                self._sync_agent(agent)

    def _execute_agent_action(self, agent: BaseAgent, action_type: AgentAction, params: dict) -> bool:
        """Execute agent action through the pool or reserve"""
        try:
            if action_type == AgentAction.MINT:
                result = self._execute_mint(agent, params)
            elif action_type == AgentAction.REDEEM:
                result = self._execute_redeem(agent, params)
            elif action_type == AgentAction.RECOLLATERALIZE:
                result = self._execute_recollateralize(agent, params)
            elif action_type == AgentAction.BUYBACK:
                result = self._execute_buyback(agent, params)
            else:
                return False
        except ReserveSimError as e:
            self.rejections[e.reason] += 1
            self._step_rejections += 1
            agent.record_result(False)
            return False

        if result is None:
            return False

        profit = from_fixed(getattr(result, "profit", 0))
        penalty = from_fixed(getattr(result, "penalty", 0))
        agent.record_result(True, profit, penalty)
        self.action_counts[action_type.value] += 1
        self._step_actions += 1
        self._record_agent_action(agent.agent_id, action_type, result)
        return True

    def _execute_mint(self, agent: BaseAgent, params: dict):
        system = self.system
        pool = system.pool
        tcr = system.reserve.global_collateral_ratio
        collateral_balance = system.collateral.balance_of(agent.agent_id)
        share_balance = system.share.balance_of(agent.agent_id)

        if tcr == 0:
            share_amount = params.get("share_amount")
            if share_amount is None:
                prices = self.market.current_prices
                share_amount = params.get("collateral_amount", 0.0) * prices["collateral"] / prices["share"]
            share_amount = min(to_fixed(share_amount), share_balance)
            return pool.mint_algorithmic(agent.agent_id, share_amount, 0)

        collateral_amount = min(to_fixed(params.get("collateral_amount", 0.0)), collateral_balance)
        if tcr == ONE:
            return pool.mint_1t1(agent.agent_id, collateral_amount, 0)

        share_amount = pool.quote_fractional_share_amount(collateral_amount)
        if share_amount > share_balance:
            collateral_amount = FixedPointMath.mul_div(collateral_amount, share_balance, share_amount)
            share_amount = pool.quote_fractional_share_amount(collateral_amount)
        return pool.mint_fractional(agent.agent_id, collateral_amount, share_amount, 0)

    def _execute_redeem(self, agent: BaseAgent, params: dict):
        system = self.system
        pool = system.pool
        synth_amount = min(to_fixed(params.get("synth_amount", 0.0)), system.synth.balance_of(agent.agent_id))
        ecr = system.reserve.get_ecr()

        if ecr == 0:
            return pool.redeem_algorithmic(agent.agent_id, synth_amount, 0)
        if ecr < ONE:
            return pool.redeem_fractional(agent.agent_id, synth_amount, 0, 0)
        # Over-collateralized states reject here until buybacks bring ECR down
        return pool.redeem_1t1(agent.agent_id, synth_amount, 0)

    def _execute_recollateralize(self, agent: BaseAgent, params: dict):
        system = self.system
        amount = min(to_fixed(params.get("collateral_amount", 0.0)),
                     system.collateral.balance_of(agent.agent_id),
                     system.reserve.recollateralize_amount(system.collateral))
        return system.reserve.recollateralize_share(agent.agent_id, system.collateral, amount, 0)

    def _execute_buyback(self, agent: BaseAgent, params: dict):
        system = self.system
        amount = min(to_fixed(params.get("share_amount", 0.0)), system.share.balance_of(agent.agent_id))
        return system.reserve.buy_back_share(agent.agent_id, amount, 0, system.collateral)

    def _refresh_controller(self):
        try:
            result = self.system.controller.refresh_collateral_ratio(self.KEEPER)
        except ReserveSimError as e:
            self.rejections[f"refresh: {e.reason}"] += 1
            return
        if result.direction is not None:
            self.refresh_history.append({
                "step": self.current_step,
                "direction": result.direction,
                "signal": result.signal,
                "growth_ratio": from_fixed(result.growth_ratio),
                "tcr": from_fixed(result.tcr),
            })

    def _manage_vault(self, step: int):
        """Accrue strategy yield and periodically rebalance the vault"""
        vault = self.system.vault
        if vault is None:
            return
        yield_amount = int(vault.vault_balance * self.config.vault_yield_rate)
        if yield_amount > 0:
            vault.accrue(yield_amount)
        if step > 0 and step % self.config.vault_rebalance_interval == 0:
            self.system.reserve.rebalance_vault(self.system.owner, 0)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def _get_protocol_state(self) -> dict:
        """Float view of the protocol handed to agents"""
        reserve = self.system.reserve
        collateral = self.system.collateral
        try:
            recollat_room = from_fixed(reserve.recollateralize_amount(collateral))
        except UndefinedRatioError:
            recollat_room = 0.0
        return {
            "tcr": from_fixed(reserve.global_collateral_ratio),
            "ecr": from_fixed(reserve.get_ecr()),
            "global_collateral_value": from_fixed(reserve.global_collateral_value()),
            "total_global_synth_value": from_fixed(reserve.total_global_synth_value()),
            "recollateralize_amount": recollat_room,
            "max_buyback_share": from_fixed(reserve.get_max_buyback_share(collateral)),
            "growth_ratio": from_fixed(self.system.controller.growth_ratio),
        }

    def _record_metrics(self):
        system = self.system
        state = self._get_protocol_state()
        prices = self.market.current_prices
        vault = system.vault

        self.metrics_history.append({
            "step": self.current_step,
            "timestamp": system.clock.now(),
            "collateral_price": prices["collateral"],
            "share_price": prices["share"],
            "synth_price": prices["synth"],
            "peg_deviation": prices["synth"] - 1.0,
            "tcr": state["tcr"],
            "ecr": state["ecr"],
            "global_collateral_value": state["global_collateral_value"],
            "total_global_synth_value": state["total_global_synth_value"],
            "growth_ratio": state["growth_ratio"],
            "synth_supply": from_fixed(system.synth.total_supply),
            "share_supply": from_fixed(system.share.total_supply),
            "reserve_idle_collateral": from_fixed(system.collateral.balance_of(system.reserve.address)),
            "vault_principal": from_fixed(vault.vault_balance) if vault is not None else 0.0,
            "share_reserves": from_fixed(system.tracker.get_share_reserves()),
            "actions": self._step_actions,
            "rejections": self._step_rejections,
        })

    def _record_agent_action(self, agent_id: str, action_type: AgentAction, result):
        record = {"step": self.current_step, "agent_id": agent_id, "action": action_type.value}
        for key, value in vars(result).items():
            record[key] = from_fixed(value) if isinstance(value, int) and not isinstance(value, bool) else value
        self.agent_actions_history.append(record)

    def _generate_results(self) -> dict:
        """Generate final simulation results"""
        ecr = np.array([m["ecr"] for m in self.metrics_history])
        tcr = np.array([m["tcr"] for m in self.metrics_history])
        peg = np.array([m["peg_deviation"] for m in self.metrics_history])
        prices = self.market.current_prices

        return {
            # Core simulation data
            "metrics_history": self.metrics_history,
            "agent_actions_history": self.agent_actions_history,
            "refresh_history": self.refresh_history,
            "rejections": dict(self.rejections),

            # Final states
            "final_protocol_state": self._get_protocol_state(),
            "reserve_state": self.system.reserve.get_state(),
            "controller_state": self.system.controller.get_state(),
            "pool_state": self.system.pool.get_state(),
            "vault_state": self.system.vault.get_state() if self.system.vault is not None else None,
            "market_summary": self.market.get_state_summary(),
            "agent_states": {
                agent_id: agent.get_portfolio_summary(prices)
                for agent_id, agent in self.agents.items()
            },

            # Configuration and summary
            "simulation_config": {
                "steps": len(self.metrics_history),
                "num_agents": len(self.agents),
                "num_agent_actions": len(self.agent_actions_history),
                "initial_config": self.config.model_dump(),
            },
            "summary_statistics": {
                "final_tcr": float(tcr[-1]) if tcr.size else None,
                "final_ecr": float(ecr[-1]) if ecr.size else None,
                "min_ecr": float(ecr.min()) if ecr.size else None,
                "max_ecr": float(ecr.max()) if ecr.size else None,
                "time_under_target": float(np.mean(ecr < tcr)) if ecr.size else 0.0,
                "mean_abs_peg_deviation": float(np.abs(peg).mean()) if peg.size else None,
                "max_abs_peg_deviation": float(np.abs(peg).max()) if peg.size else None,
                "tcr_steps_up": sum(1 for r in self.refresh_history if r["direction"] == "up"),
                "tcr_steps_down": sum(1 for r in self.refresh_history if r["direction"] == "down"),
                "action_counts": dict(self.action_counts),
                "total_rejections": sum(self.rejections.values()),
            },
        }
