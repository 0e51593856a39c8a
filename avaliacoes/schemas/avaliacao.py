# avaliacoes/schemas/avaliacao.py
"""
Formato do formulário enviado pelo frontend (camelCase) e as leituras
devolvidas pelos endpoints administrativos (snake_case, como no banco).
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

Interesse = Literal["sim", "talvez", "nao", ""]


def _nota():
    return Field(0, ge=0, le=5)


class FormModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class BasicInfo(FormModel):
    couple_name: Optional[str] = Field(None, max_length=200)
    encounter_date: Optional[str] = Field(None, max_length=50)


class PreEncontroIn(FormModel):
    communication_clarity: int = _nota()
    registration_ease: int = _nota()
    comments: Optional[str] = None


class PalestrasIn(FormModel):
    relevance: int = _nota()
    clarity: int = _nota()
    duration: int = _nota()
    comments: Optional[str] = None


class AmbientesIn(FormModel):
    comfort: int = _nota()
    cleanliness: int = _nota()
    decoration: int = _nota()
    comments: Optional[str] = None


class RefeicoesIn(FormModel):
    quality: int = _nota()
    organization: int = _nota()
    comments: Optional[str] = None


class MusicasIn(FormModel):
    suitability: int = _nota()
    quality: int = _nota()
    comments: Optional[str] = None


class EquipeIn(FormModel):
    availability: int = _nota()
    organization: int = _nota()
    comments: Optional[str] = None


class DuranteEncontro(FormModel):
    palestras: PalestrasIn
    ambientes: AmbientesIn
    refeicoes: RefeicoesIn
    musicas: MusicasIn
    equipe: EquipeIn


class GeralIn(FormModel):
    expectations: int = _nota()
    overall_rating: int = _nota()
    recommendation: int = _nota()
    comments: Optional[str] = None


class PastoralIn(FormModel):
    interest: Interesse = ""
    contact_info: Optional[str] = Field(None, max_length=500)


class PosEncontro(FormModel):
    geral: GeralIn
    pastoral: PastoralIn = PastoralIn()
    final_message: Optional[str] = None


class EvaluationData(FormModel):
    basic_info: BasicInfo = BasicInfo()
    pre_encontro: PreEncontroIn
    durante_encontro: DuranteEncontro
    pos_encontro: PosEncontro

    # Vínculo opcional com um encontro (pelo id ou pelo código do link público)
    encontro_id: Optional[int] = Field(None, ge=1)
    codigo_acesso: Optional[str] = Field(None, max_length=50)


# --- Leituras ---


class ReadModel(BaseModel):
    class Config:
        from_attributes = True


class AvaliacaoRead(ReadModel):
    id: int
    pastoral_id: int
    encontro_id: Optional[int] = None
    couple_name: Optional[str] = None
    encounter_date: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PreEncontroRead(ReadModel):
    communication_clarity: int
    registration_ease: int
    comments: Optional[str] = None


class PalestrasRead(ReadModel):
    relevance: int
    clarity: int
    duration: int
    comments: Optional[str] = None


class AmbientesRead(ReadModel):
    comfort: int
    cleanliness: int
    decoration: int
    comments: Optional[str] = None


class RefeicoesRead(ReadModel):
    quality: int
    organization: int
    comments: Optional[str] = None


class MusicasRead(ReadModel):
    suitability: int
    quality: int
    comments: Optional[str] = None


class EquipeRead(ReadModel):
    availability: int
    organization: int
    comments: Optional[str] = None


class AvaliacaoGeralRead(ReadModel):
    expectations: int
    overall_rating: int
    recommendation: int
    comments: Optional[str] = None


class PastoralInteresseRead(ReadModel):
    interest: str
    contact_info: Optional[str] = None


class MensagemFinalRead(ReadModel):
    message: Optional[str] = None
