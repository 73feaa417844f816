# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Everything needed to put a new character in the room: the character
#   registry (key -> walking parameters), the cocktail catalog, random order
#   construction, and the Patron / Sponsor factories.
#
# Design notes:
#   - The registry replaces prefab lookup: asking for an unknown key raises
#     MissingCharacterError instead of returning a default.
#   - Orders are sampled from the catalog restricted to stocked consumables;
#     order size follows configured weights (most patrons want one drink).
#
# Usage:
#   registry = CharacterRegistry.from_config(cfg)
#   builder = make_order_builder(cfg, rng)
#   patron = spawn_customer(registry, key, position, builder, scorer)
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional
from .entities import Consumable, Order, Recipe, Scorer, Vec2
from .errors import MissingCharacterError
from .patron import Patron, Sponsor
from .policies import BASE_PATIENCE

SPONSOR_KEY = "sponsor"

@dataclass
class CharacterSpec:
    key: str
    width: float = 0.5
    speed: float = 4.0
    base_patience: float = BASE_PATIENCE
    weight: Optional[float] = None          # spawn weight; None = uniform

class CharacterRegistry:
    def __init__(self, specs: Dict[str, CharacterSpec], sponsor_key: str = SPONSOR_KEY):
        self.specs = dict(specs)
        self.sponsor_key = sponsor_key

    @classmethod
    def from_config(cls, cfg: dict) -> "CharacterRegistry":
        sponsor_key = cfg.get("sponsor", {}).get("key", SPONSOR_KEY)
        specs: Dict[str, CharacterSpec] = {}
        for key, vals in (cfg.get("characters") or {}).items():
            vals = vals or {}
            specs[key] = CharacterSpec(
                key,
                width=float(vals.get("width", 0.5)),
                speed=float(vals.get("speed", 4.0)),
                base_patience=float(vals.get("patience", BASE_PATIENCE)),
                weight=vals.get("weight"),
            )
        return cls(specs, sponsor_key)

    def get(self, key: str) -> CharacterSpec:
        spec = self.specs.get(key)
        if spec is None:
            raise MissingCharacterError(key)
        return spec

    def customer_keys(self) -> List[str]:
        return [k for k in self.specs if k != self.sponsor_key]

    def weights(self) -> Optional[Dict[str, float]]:
        """Configured spawn weights, or None when every customer is left uniform."""
        w = {k: float(s.weight) for k, s in self.specs.items()
             if s.weight is not None and k != self.sponsor_key}
        return w or None

def load_catalog(cfg: dict) -> Dict[str, Recipe]:
    """
    Build the cocktail catalog from config.

    Each entry gives ``units`` (consumable -> count) and optionally ``price``;
    without a price the drink is priced from unit costs with
    ``economy.price_markup``. ``economy.price_scale`` multiplies every price.
    """
    econ = cfg.get("economy", {})
    markup = float(econ.get("price_markup", 3.0))
    scale = float(econ.get("price_scale", 1.0))
    catalog: Dict[str, Recipe] = {}
    for name, entry in (cfg.get("cocktails") or {}).items():
        base = Recipe.of(name, entry["units"])
        price = entry.get("price")
        if price is None:
            price = base.suggest_price(markup)
        catalog[name] = Recipe(base.key, base.units, max(1, int(round(float(price) * scale))))
    if not catalog:
        raise ValueError("No cocktails configured")
    return catalog

def stocked_recipes(catalog: Dict[str, Recipe], stock: Optional[List[str]]) -> List[Recipe]:
    if stock is None:
        return list(catalog.values())
    owned = {Consumable(s) for s in stock}
    menu = [r for r in catalog.values() if all(u in owned for u, _ in r.units)]
    if not menu:
        raise ValueError("No cocktail can be mixed from the stocked consumables")
    return menu

def build_random_order(menu: List[Recipe], rng: random.Random,
                       size_weights: Optional[Dict[int, float]] = None) -> Order:
    """Pick an order size from size_weights (default: always 1) then that many drinks."""
    size = 1
    if size_weights:
        sizes = [int(k) for k in size_weights]
        size = rng.choices(sizes, weights=[float(v) for v in size_weights.values()], k=1)[0]
    return Order([menu[rng.randrange(len(menu))] for _ in range(max(1, size))])

def make_order_builder(cfg: dict, rng: random.Random) -> Callable[[], Order]:
    oc = cfg.get("orders", {})
    menu = stocked_recipes(load_catalog(cfg), oc.get("stock"))
    size_weights = oc.get("size_weights")

    def _build() -> Order:
        return build_random_order(menu, rng, size_weights)
    return _build

def spawn_customer(registry: CharacterRegistry, key: str, position: Vec2,
                   order_builder: Callable[[], Order], scorer: Scorer) -> Patron:
    spec = registry.get(key)
    return Patron(
        key,
        position,
        order_builder=order_builder,
        scorer=scorer,
        width=spec.width,
        speed=spec.speed,
        base_patience=spec.base_patience,
    )

def spawn_sponsor(registry: CharacterRegistry, position: Vec2, offer_window: float) -> Sponsor:
    spec = registry.get(registry.sponsor_key)
    return Sponsor(spec.key, position, width=spec.width, speed=spec.speed, offer_window=offer_window)
