"""
Step graph: which question comes next and what it says.

The sequence is a fixed table of successors with a single branch at
hasExistingPlan. Nothing here reads session state beyond CollectedData.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Tuple, Union

from leadchat.core import state_machine as sm
from leadchat.settings import settings
from leadchat.store.models import CollectedData

PLAN_CHOICES = ("Sim", "Não")
CARRIER_CHOICES = ("Bradesco Saúde", "SulAmérica", "Amil", "NotreDame", "Hapvida", "Outro")
DIFFICULTY_CHOICES = (
    "Alto custo",
    "Rede médica limitada",
    "Demora no atendimento",
    "Cobertura insuficiente",
    "Burocracia excessiva",
    "Outro",
)


def _after_plan_question(data: CollectedData) -> str:
    return sm.CURRENT_PLAN_NAME if data.hasExistingPlan else sm.MAIN_DIFFICULTY


_SUCCESSORS: Dict[str, Union[str, Callable[[CollectedData], str]]] = {
    sm.NAME: sm.PHONE,
    sm.PHONE: sm.TAX_ID,
    sm.TAX_ID: sm.HAS_EXISTING_PLAN,
    sm.HAS_EXISTING_PLAN: _after_plan_question,
    sm.CURRENT_PLAN_NAME: sm.CURRENT_PLAN_COST,
    sm.CURRENT_PLAN_COST: sm.MAIN_DIFFICULTY,
    sm.MAIN_DIFFICULTY: sm.DONE,
    sm.DONE: sm.DONE,
}


def next_step(step: str, data: CollectedData) -> str:
    successor = _SUCCESSORS.get(step, sm.DONE)
    if callable(successor):
        return successor(data)
    return successor


@dataclass(frozen=True)
class Prompt:
    text: str
    options: Tuple[str, ...] = ()


def greeting() -> str:
    return (
        f"👋 Olá! Sou o {settings.ASSISTANT_NAME}, assistente virtual da {settings.BRAND_NAME}. "
        "Vou te ajudar a encontrar o melhor plano PME para sua empresa!"
    )


def prompt(step: str, data: CollectedData) -> Prompt:
    name = data.name or ""
    if step == sm.NAME:
        return Prompt("Para começar, qual é o seu nome? 😊")
    if step == sm.PHONE:
        return Prompt(f"Perfeito, {name}! 📱 Agora preciso do seu WhatsApp para nosso consultor entrar em contato:")
    if step == sm.TAX_ID:
        return Prompt("🏢 Qual seu CNPJ?")
    if step == sm.HAS_EXISTING_PLAN:
        return Prompt("🏥 Vocês já possuem algum plano de saúde atualmente?", PLAN_CHOICES)
    if step == sm.CURRENT_PLAN_NAME:
        return Prompt("📝 Qual é o nome do plano de saúde atual?", CARRIER_CHOICES)
    if step == sm.CURRENT_PLAN_COST:
        return Prompt("💰 Quanto vocês pagam mensalmente pelo plano atual? (Ex: R$ 350,00)")
    if step == sm.MAIN_DIFFICULTY:
        return Prompt("🤔 Qual é a maior dificuldade que vocês enfrentam com planos de saúde?", DIFFICULTY_CHOICES)
    if step == sm.DONE:
        return Prompt(
            f"🎉 Perfeito, {name}! Recebi todas as informações. Nossa equipe analisará seu perfil "
            "e entrará em contato em até 24 horas com as melhores opções para sua empresa. Obrigada!"
        )
    return Prompt("")
