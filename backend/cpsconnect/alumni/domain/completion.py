"""Profile completion score and improvement hints shown to the owner."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from cpsconnect.alumni.domain.models import AlumniProfile


def _text(value: Optional[str], min_len: int = 0) -> bool:
	if not value:
		return False
	stripped = value.strip()
	return len(stripped) > min_len if min_len else bool(stripped)


def _has_social(profile: AlumniProfile) -> bool:
	return any((profile.linkedin, profile.github, profile.twitter, profile.personal_website, profile.company_website))


def _visibility_configured(profile: AlumniProfile) -> bool:
	visibility = profile.visibility or {}
	return any(key in visibility for key in ("showEmail", "showCity", "showCompany"))


# (criterion, check, hint when missing). Identity fields carry no hint: they are always required.
_CRITERIA: Tuple[Tuple[str, Callable[[AlumniProfile], bool], Optional[str]], ...] = (
	("name", lambda p: bool(p.name), None),
	("email", lambda p: bool(p.email), None),
	("year_promo", lambda p: bool(p.year_promo), None),
	("headline", lambda p: _text(p.headline), "Ajoute un titre professionnel pour te présenter en un coup d'œil"),
	("bio", lambda p: _text(p.bio, 20), "Rédige une bio détaillée pour que les autres alumni te connaissent mieux"),
	("photo", lambda p: bool(p.photo), "Ajoute une photo de profil pour humaniser ton profil"),
	("sectors", lambda p: bool(p.sectors), "Indique tes secteurs d'activité pour être trouvé plus facilement"),
	("expertise", lambda p: bool(p.expertise), "Ajoute tes expertises pour montrer tes compétences"),
	("company", lambda p: _text(p.company), "Renseigne ton entreprise actuelle"),
	("position", lambda p: _text(p.position), "Indique ton poste actuel"),
	("location", lambda p: _text(p.city) or _text(p.country), "Ajoute ta localisation pour faciliter le networking local"),
	("social", _has_social, "Ajoute au moins un lien vers tes réseaux sociaux ou ton site web"),
	("portfolio", lambda p: bool(p.portfolio), "Ajoute des projets à ton portfolio pour valoriser ton travail"),
	("services", lambda p: bool(p.services), None),
	("seeking_offering", lambda p: bool(p.seeking) or bool(p.offering), None),
	("soft_skills", lambda p: bool(p.soft_skills), "Ajoute tes soft skills (communication, leadership, etc.) pour montrer tes qualités humaines"),
	("languages", lambda p: bool(p.languages), "Indique les langues que tu parles pour élargir tes opportunités"),
	("interests", lambda p: bool(p.interests), "Partage tes centres d'intérêt pour créer des connexions personnelles"),
	("education", lambda p: bool(p.education), "Ajoute ton parcours éducatif pour valoriser ta formation"),
	("experiences", lambda p: bool(p.experiences), "Décris tes expériences professionnelles pour montrer ton parcours"),
	("certifications", lambda p: bool(p.certifications), "Ajoute tes certifications pour valider tes compétences officiellement"),
	("availability", lambda p: _text(p.availability), "Indique ta disponibilité (freelance, ouvert à opportunités, etc.)"),
	("seeking_details", lambda p: _text(p.seeking_details, 10), "Décris en détail ce que tu cherches pour attirer les bonnes opportunités"),
	("rate_if_paid", lambda p: _text(p.rate_if_paid), "Indique tes tarifs si tu proposes des services payants"),
	("visibility", _visibility_configured, None),
)

_SEEKING_HINT = "Indique ce que tu cherches (collaborateur, mentor, opportunité...)"
_OFFERING_HINT = "Indique ce que tu proposes (conseil, mentorat, service...)"

_LEVELS = (
	(90, "excellent", "Excellent ! Ton profil est presque parfait !"),
	(70, "great", "Très bien ! Quelques détails en plus et ce sera parfait !"),
	(50, "good", "Bon début ! Continue de compléter ton profil !"),
	(30, "started", "C'est un bon début ! Ajoute plus d'infos pour être visible !"),
	(0, "empty", "Commence par remplir les informations essentielles !"),
)


@dataclass(slots=True)
class Completion:
	percentage: int
	level: str
	message: str
	missing: List[str]
	suggestions: List[str]


def completion_percentage(profile: AlumniProfile) -> int:
	filled = sum(1 for _, check, _ in _CRITERIA if check(profile))
	return int(filled * 100 / len(_CRITERIA) + 0.5)


def suggestions(profile: AlumniProfile) -> List[str]:
	hints: List[str] = []
	for name, check, hint in _CRITERIA:
		if hint and not check(profile):
			hints.append(hint)
		if name == "social":
			# Seeking/offering hints keep their place right after the social links one.
			if not profile.seeking:
				hints.append(_SEEKING_HINT)
			if not profile.offering:
				hints.append(_OFFERING_HINT)
	return hints


def completion_message(percentage: int) -> Tuple[str, str]:
	for threshold, level, message in _LEVELS:
		if percentage >= threshold:
			return level, message
	return _LEVELS[-1][1], _LEVELS[-1][2]


def evaluate(profile: AlumniProfile) -> Completion:
	percentage = completion_percentage(profile)
	level, message = completion_message(percentage)
	return Completion(
		percentage=percentage,
		level=level,
		message=message,
		missing=[name for name, check, _ in _CRITERIA if not check(profile)],
		suggestions=suggestions(profile),
	)
